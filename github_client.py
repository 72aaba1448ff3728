"""
GitHub API client fetching one page of repository search results.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from config import GITHUB_API_BASE, MAX_PAGES, PER_PAGE, REQUEST_TIMEOUT, get_github_token, logger
from criteria import SearchCriteria
from errors import (
    CEILING_MESSAGE,
    INVALID_TOKEN_MESSAGE,
    RATE_LIMIT_MESSAGE,
    CeilingExceededError,
    FetchError,
    InvalidTokenError,
    RateLimitExceededError,
)


@dataclass
class SearchResponse:
    """One page of search results plus the total match count for its criteria."""
    total_count: int
    items: List[Dict[str, Any]] = field(default_factory=list)


def build_search_query(criteria: SearchCriteria) -> str:
    """Builds the GitHub `q` parameter, e.g. 'stars:2000...4000 language:rust'."""
    parts = [f"stars:{criteria.stars}"]
    if criteria.language:
        parts.append(f"language:{criteria.language}")
    if criteria.created:
        parts.append(f"created:{criteria.created}")
    return " ".join(parts)


def normalize_repo(repo):
    """Keeps the fields the feed displays from a raw search item."""
    owner = repo.get("owner") or {}
    license_info = repo.get("license") or {}
    return {
        "id": repo.get("id"),
        "full_name": repo.get("full_name"),
        "name": repo.get("name"),
        "owner": owner.get("login"),
        "description": repo.get("description"),
        "language": repo.get("language"),
        "url": repo.get("html_url"),
        "api_url": repo.get("url"),
        "stars": repo.get("stargazers_count"),
        "forks": repo.get("forks_count"),
        "watchers": repo.get("watchers_count"),
        "open_issues": repo.get("open_issues_count"),
        "topics": repo.get("topics", []),
        "license": license_info.get("spdx_id"),
        "created_at": repo.get("created_at"),
        "updated_at": repo.get("updated_at"),
        "subscribers_count": None,
    }


class GitHubClient:
    """
    Fetches single pages from the GitHub repository search endpoint.

    Maps HTTP failures onto the feed's error types so the cursor can tell a
    rate limit (terminal) apart from a bucket that simply failed (fallback).
    """

    def __init__(self, token: Optional[str] = None):
        self.token = token if token is not None else get_github_token()
        if self.token and str(self.token).strip().lower() in ("none", ""):
            self.token = None

    def _headers(self):
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def fetch_page(self, criteria: SearchCriteria, page: int) -> SearchResponse:
        """
        Fetch one page of repositories matching the criteria.

        Args:
            criteria (SearchCriteria): The bucket to search.
            page (int): 1-based page number.

        Returns:
            SearchResponse: total match count and normalized repository dicts.

        Raises:
            CeilingExceededError: page beyond the 1000-result limit (no request is made).
            RateLimitExceededError, InvalidTokenError, FetchError: on failed requests.
        """
        if page > MAX_PAGES:
            raise CeilingExceededError(CEILING_MESSAGE)

        params = {
            "q": build_search_query(criteria),
            "sort": "created" if criteria.created else "stars",
            "order": "desc",
            "page": page,
            "per_page": PER_PAGE,
        }
        url = f"{GITHUB_API_BASE}/search/repositories"

        logger.info(f"Searching GitHub: {params['q']} - Page {page}")
        try:
            response = requests.get(url, headers=self._headers(), params=params, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch repositories: {e}") from e

        if response.status_code != 200:
            self._raise_for_status(response)

        try:
            data = response.json()
            total_count = int(data.get("total_count", 0))
            raw_items = data.get("items") or []
        except (ValueError, TypeError, AttributeError) as e:
            raise FetchError(f"Malformed search response: {e}", response.status_code) from e

        items = [normalize_repo(repo) for repo in raw_items]
        if self.token:
            items = [self._with_subscribers(repo) for repo in items]
        return SearchResponse(total_count=total_count, items=items)

    def _raise_for_status(self, response):
        status = response.status_code
        logger.error(f"GitHub API Error: {status} - {response.text[:200]}")
        if status in (403, 429):
            raise RateLimitExceededError(RATE_LIMIT_MESSAGE, status)
        if status == 422:
            raise CeilingExceededError(CEILING_MESSAGE, status)
        if status == 401:
            raise InvalidTokenError(INVALID_TOKEN_MESSAGE, status)
        raise FetchError("Failed to fetch repositories", status)

    def _with_subscribers(self, repo):
        """Adds subscribers_count from the repo detail endpoint; None if that call fails."""
        if not repo.get("api_url"):
            return repo
        try:
            response = requests.get(repo["api_url"], headers=self._headers(), timeout=REQUEST_TIMEOUT)
            if response.status_code == 200:
                repo["subscribers_count"] = response.json().get("subscribers_count") or 0
        except (requests.RequestException, ValueError) as e:
            logger.debug(f"Subscriber lookup failed for {repo.get('full_name')}: {e}")
        return repo
