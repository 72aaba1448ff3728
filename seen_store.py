"""
Persisted per-criteria pagination progress.

Progress is kept as a mapping from a criteria key to FeedProgress and stored
as one JSON value in a key-value store. Seen pages are sets in memory and
sorted lists on disk.
"""

import json
import os
import pathlib
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from config import SEEN_STORAGE_KEY, get_state_file, logger


@dataclass
class FeedProgress:
    """Fetch progress for one criteria."""
    seen_pages: Set[int] = field(default_factory=set)
    total_pages: Optional[int] = None
    exhausted: bool = False


def encode_progress(progress: FeedProgress) -> dict:
    return {
        "seenPages": sorted(progress.seen_pages),
        "totalPages": progress.total_pages,
        "exhausted": progress.exhausted,
    }


def decode_progress(record: dict) -> FeedProgress:
    total = record.get("totalPages")
    return FeedProgress(
        seen_pages={int(p) for p in record.get("seenPages", [])},
        total_pages=int(total) if total is not None else None,
        exhausted=bool(record.get("exhausted", False)),
    )


def encode_state(state: Dict[str, FeedProgress]) -> dict:
    return {key: encode_progress(progress) for key, progress in state.items()}


def decode_state(records: dict) -> Dict[str, FeedProgress]:
    return {key: decode_progress(record) for key, record in records.items()}


class JsonFileStore:
    """
    Minimal key-value store persisted as a single JSON document.
    Values are strings, like browser local storage.
    """

    def __init__(self, path=None):
        self.path = pathlib.Path(path or get_state_file())

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read state file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str):
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str):
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class SeenStore:
    """
    Loads, saves and clears the progress mapping under one storage key.

    `lock` guards read-modify-save sequences; cursors sharing a store share it.
    """

    def __init__(self, backend=None, key: str = SEEN_STORAGE_KEY):
        self.backend = backend if backend is not None else JsonFileStore()
        self.key = key
        self.lock = threading.RLock()

    def load(self) -> Dict[str, FeedProgress]:
        """Returns stored progress, or an empty mapping when absent or unreadable."""
        stored = self.backend.get(self.key)
        if not stored:
            return {}
        try:
            records = json.loads(stored)
            if not isinstance(records, dict):
                raise ValueError("expected a JSON object")
            return decode_state(records)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable feed progress: {e}")
            return {}

    def save(self, state: Dict[str, FeedProgress]):
        self.backend.set(self.key, json.dumps(encode_state(state)))

    def clear(self):
        self.backend.delete(self.key)
