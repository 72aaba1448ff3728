"""
Feed cursor: decides which (criteria, page) to fetch on every "load more".

Progress is tracked per criteria so no page is fetched twice in a feed epoch
while unseen pages remain. Empty buckets and failed fetches fall back to
another criteria; rate limits and bad tokens are surfaced to the caller.
"""

import math
import random
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from config import MAX_PAGES, PER_PAGE, logger
from criteria import SearchCriteria, criteria_space
from errors import EXHAUSTED_MESSAGE, TERMINAL_ERRORS, FeedExhaustedError
from seen_store import FeedProgress, SeenStore


@dataclass(frozen=True)
class PageParam:
    """Continuation cursor handed back to the caller."""
    criteria: SearchCriteria
    page: int = 1


@dataclass
class QueryResponse:
    total_count: int
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_page: Optional[PageParam] = None


class FeedCursor:
    """
    Picks the next page to request and records fetch outcomes.

    Usage:
        cursor = FeedCursor(GitHubClient().fetch_page, SeenStore())
        response = cursor.load_more()
        more = cursor.load_more(response.next_page)
    """

    def __init__(
        self,
        fetch_page: Callable[[SearchCriteria, int], Any],
        store: Optional[SeenStore] = None,
        space: Optional[List[SearchCriteria]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            fetch_page: Callable (criteria, page) -> SearchResponse.
            store: Persistence for per-criteria progress (default: JSON file in the data dir).
            space: Ordered criteria to draw from (default: the star-banded space).
            rng: Random source used to pick among available criteria.
        """
        self.fetch_page = fetch_page
        self.store = store if store is not None else SeenStore()
        self.space = list(space) if space is not None else criteria_space()
        if not self.space:
            raise ValueError("FeedCursor needs at least one search criteria")
        self.rng = rng or random.Random()
        self._seen: Optional[Dict[str, FeedProgress]] = None
        self._lock = getattr(self.store, "lock", None) or threading.RLock()

    @property
    def seen(self) -> Dict[str, FeedProgress]:
        """Progress mapping, loaded from the store on first use."""
        if self._seen is None:
            self._seen = self.store.load()
        return self._seen

    def select_next(
        self,
        seen: Optional[Dict[str, FeedProgress]] = None,
        exclude: Optional[Set[str]] = None,
    ) -> Optional[PageParam]:
        """
        Chooses a random non-exhausted criteria and its first unseen page.

        Criteria keys in `exclude` (already tried by the current request) are
        skipped; returns None when they are the only ones left.
        """
        seen = self.seen if seen is None else seen
        exclude = exclude or set()
        while True:
            available = [c for c in self.space if not self._is_exhausted(seen, c)]
            if not available:
                logger.info("Every criteria is exhausted, starting a new feed epoch")
                seen.clear()
                self.store.clear()
                fresh = [c for c in self.space if c.key not in exclude]
                return PageParam(fresh[0], 1) if fresh else None

            candidates = [c for c in available if c.key not in exclude]
            if not candidates:
                return None

            criteria = self.rng.choice(candidates)
            progress = seen.get(criteria.key)
            if progress is None or not progress.total_pages:
                return PageParam(criteria, 1)

            for page in range(1, min(progress.total_pages, MAX_PAGES) + 1):
                if page not in progress.seen_pages:
                    return PageParam(criteria, page)

            # Stale progress: every page is seen but the flag was never set
            progress.exhausted = True
            self.store.save(seen)

    def next_param(self, requested: Optional[PageParam] = None) -> PageParam:
        """Keeps the caller's continuation while its bucket still has unseen pages."""
        if requested is not None and self._is_open(requested):
            return requested
        return self.select_next()

    def resolve(self, param: PageParam) -> QueryResponse:
        """
        Fetches `param`, records the outcome and falls back to other criteria on failure.

        Makes at most one attempt per criteria in the space, plus one for a
        `param` whose criteria lies outside it.

        Raises:
            RateLimitExceededError, InvalidTokenError: unchanged, with progress untouched.
            FeedExhaustedError: every attempt was empty or failed.
        """
        last_error = None
        tried = set()
        attempts = len(self.space)
        if param.criteria.key not in {c.key for c in self.space}:
            attempts += 1
        for attempt in range(attempts):
            if attempt:
                param = self.select_next(exclude=tried)
                if param is None:
                    break
            key = param.criteria.key
            tried.add(key)
            try:
                response = self.fetch_page(param.criteria, param.page)
            except TERMINAL_ERRORS:
                raise
            except Exception as e:
                logger.warning(f"Fetch failed for {key} page {param.page}, trying another criteria: {e}")
                last_error = e
                continue

            if response.total_count == 0:
                logger.info(f"No results for {key}, marking it exhausted")
                self._record_empty(key)
                continue

            self._record_page(key, param.page, response.total_count)
            return QueryResponse(
                total_count=response.total_count,
                items=[dict(item, search_criteria=key) for item in response.items],
                next_page=PageParam(param.criteria, param.page + 1),
            )

        raise FeedExhaustedError(EXHAUSTED_MESSAGE) from last_error

    def load_more(self, requested: Optional[PageParam] = None) -> QueryResponse:
        """
        Selects and resolves the next page as one critical section.

        Progress is reloaded first so other feeds sharing the store are not overwritten.
        """
        with self._lock:
            self._seen = self.store.load()
            return self.resolve(self.next_param(requested))

    def reset(self):
        """Drops all progress, in memory and in storage."""
        with self._lock:
            self._seen = {}
            self.store.clear()

    @staticmethod
    def _is_exhausted(seen, criteria):
        progress = seen.get(criteria.key)
        return progress is not None and progress.exhausted

    def _is_open(self, param):
        if param.page < 1 or param.page > MAX_PAGES:
            return False
        progress = self.seen.get(param.criteria.key)
        if progress is None:
            return True
        if progress.exhausted or param.page in progress.seen_pages:
            return False
        return not progress.total_pages or param.page <= progress.total_pages

    def _record_empty(self, key):
        seen = self.seen
        progress = seen.get(key)
        if progress is None:
            seen[key] = FeedProgress(seen_pages=set(), total_pages=0, exhausted=True)
        else:
            progress.exhausted = True
        self.store.save(seen)

    def _record_page(self, key, page, total_count):
        seen = self.seen
        total_pages = min(math.ceil(total_count / PER_PAGE), MAX_PAGES)
        progress = seen.get(key)
        if progress is None:
            progress = seen[key] = FeedProgress(total_pages=total_pages)
        else:
            progress.total_pages = max(progress.total_pages or 0, total_pages)
        progress.seen_pages.add(page)
        progress.exhausted = len(progress.seen_pages) >= progress.total_pages
        self.store.save(seen)
