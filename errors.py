"""
Exception types raised while fetching and paginating the repository feed.
"""


class RepoFeedError(Exception):
    """Base class for every error raised by the feed."""


class GitHubAPIError(RepoFeedError):
    """A single search page could not be fetched."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitExceededError(GitHubAPIError):
    """The search quota is used up. Surfaced to the caller, never retried."""


class InvalidTokenError(GitHubAPIError):
    """GitHub rejected the configured token. Surfaced to the caller, never retried."""


class CeilingExceededError(GitHubAPIError):
    """The requested page lies beyond the first 1000 search results."""


class FetchError(GitHubAPIError):
    """Network, HTTP or parse failure for one page."""


class FeedExhaustedError(RepoFeedError):
    """Every candidate criteria failed or came back empty."""


# Errors that end a "load more" immediately instead of falling back
TERMINAL_ERRORS = (RateLimitExceededError, InvalidTokenError)

RATE_LIMIT_MESSAGE = (
    "Rate limit exceeded. Please add a GitHub token for extended access or try again later."
)
INVALID_TOKEN_MESSAGE = "Invalid token, please check your GitHub token and try again."
CEILING_MESSAGE = "Only first 1000 search results are available"
EXHAUSTED_MESSAGE = (
    "No more repositories could be loaded right now. Every search bucket came back empty "
    "or failed; try again later or reset the feed."
)
