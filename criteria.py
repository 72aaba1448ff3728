"""
Search criteria that partition GitHub's star-count space into buckets.

GitHub search truncates every query at 1000 results no matter how many
repositories match. Narrow star bands keep the real match count of each
bucket low enough that pagination can reach all of it.
"""

import json
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional

FEED_KINDS = ("random", "new")

# Star bands for the default feed
LOWEST_STARS = 700
BAND_START = 2000
BAND_END = 50000
BAND_WIDTH = 2000

# Floors for the "new" feed
NEW_FEED_MIN_STARS = ">10"
NEW_FEED_DAYS = 7


@dataclass(frozen=True)
class SearchCriteria:
    """One bounded search query (a bucket).

    stars: star range in GitHub syntax, e.g. '2000...4000' or '>50000'.
    language: optional language filter.
    created: optional creation-date filter, e.g. '>2024-05-01'.
    """
    stars: str
    language: Optional[str] = None
    created: Optional[str] = None

    @property
    def key(self) -> str:
        """Canonical key used to index feed progress."""
        fields = {"stars": self.stars}
        if self.language:
            fields["language"] = self.language
        if self.created:
            fields["created"] = self.created
        return json.dumps(fields, sort_keys=True, separators=(",", ":"))

    def with_language(self, language: Optional[str]) -> "SearchCriteria":
        return replace(self, language=language or None)

    def __str__(self):
        return self.key


def generate(feed_kind: str = "random", today=None) -> List[SearchCriteria]:
    """
    Build the ordered list of criteria for a feed kind.

    Args:
        feed_kind: 'random' for the star-banded feed, 'new' for repos created in the last week.
        today: Date used for the 'new' feed's creation floor (defaults to the current UTC date).

    Returns:
        list: SearchCriteria in their fixed order.
    """
    if feed_kind == "new":
        today = today or datetime.now(timezone.utc).date()
        since = today - timedelta(days=NEW_FEED_DAYS)
        return [SearchCriteria(stars=NEW_FEED_MIN_STARS, created=f">{since.isoformat()}")]

    if feed_kind != "random":
        raise ValueError(f"Unknown feed kind: {feed_kind!r} (expected one of {FEED_KINDS})")

    criterias = [SearchCriteria(stars=f"{LOWEST_STARS}...{BAND_START}")]
    for low in range(BAND_START, BAND_END, BAND_WIDTH):
        criterias.append(SearchCriteria(stars=f"{low}...{low + BAND_WIDTH}"))
    criterias.append(SearchCriteria(stars=f">{BAND_END}"))
    return criterias


def criteria_space(feed_kind: str = "random", language: Optional[str] = None, today=None) -> List[SearchCriteria]:
    """Generated criteria with the caller's language filter merged into each one."""
    return [c.with_language(language) for c in generate(feed_kind, today=today)]
