"""
Caller-facing feed that concatenates fetched pages into one growing list.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
)

from config import FEED_RETRY_LIMIT, logger
from criteria import criteria_space
from errors import TERMINAL_ERRORS, RepoFeedError
from feed_cursor import FeedCursor, PageParam
from github_client import GitHubClient
from seen_store import SeenStore


@dataclass
class FeedChunk:
    """Result of one "load more": new items, or an error message for display."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    total_count_for_bucket: int = 0
    error_message: Optional[str] = None


class RepositoryFeed:
    """Infinite repository feed backed by a FeedCursor."""

    def __init__(self, cursor: FeedCursor, retry_limit: int = FEED_RETRY_LIMIT):
        self.cursor = cursor
        self.retry_limit = retry_limit
        self.repositories: List[Dict[str, Any]] = []
        self.next_page: Optional[PageParam] = None

    @classmethod
    def for_language(cls, feed_kind="random", language=None, client=None, store=None, rng=None):
        """Builds a feed whose criteria all carry the given language filter."""
        client = client or GitHubClient()
        cursor = FeedCursor(
            client.fetch_page,
            store=store if store is not None else SeenStore(),
            space=criteria_space(feed_kind, language),
            rng=rng,
        )
        return cls(cursor)

    def request_more(self) -> FeedChunk:
        """
        Loads the next chunk of repositories.

        Non-terminal failures are retried up to `retry_limit` times; errors are
        reported through `error_message` rather than raised.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_limit),
            retry=retry_if_exception_type(RepoFeedError) & retry_if_not_exception_type(TERMINAL_ERRORS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            response = retrying(self.cursor.load_more, self.next_page)
        except TERMINAL_ERRORS as e:
            logger.error(f"Feed stopped: {e}")
            return FeedChunk(error_message=str(e))
        except RepoFeedError as e:
            logger.warning(f"Giving up after {self.retry_limit} attempts: {e}")
            return FeedChunk(error_message=str(e))

        self.repositories.extend(response.items)
        self.next_page = response.next_page
        logger.info(f"Loaded {len(response.items)} repositories (feed size {len(self.repositories)})")
        return FeedChunk(items=response.items, total_count_for_bucket=response.total_count)

    def reset(self):
        """Clears the visible list, the continuation cursor and persisted progress."""
        self.repositories = []
        self.next_page = None
        self.cursor.reset()
