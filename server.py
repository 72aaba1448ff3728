"""
FastMCP Server implementation for the RepoFeed repository discovery feed.
Exposes tools for loading more repositories and resetting the feed.
"""

from fastmcp import FastMCP
from config import get_system_prompt, logger
from criteria import FEED_KINDS, generate
from feed import RepositoryFeed
from seen_store import SeenStore

SYSTEM_PROMPT = get_system_prompt()

# Initialize FastMCP Server
mcp = FastMCP("RepoFeed", instructions=SYSTEM_PROMPT)

# Progress for every feed lives under one storage key
_store = SeenStore()

# One feed per (feed kind, language, creation floor), kept for the lifetime of the server
_feeds = {}


def get_feed(feed_kind: str = "random", language: str = None) -> RepositoryFeed:
    """Returns the feed for a kind/language pair, creating it on first use.

    The 'new' feed's creation floor moves with the date, so a feed built on an
    older floor is replaced.
    """
    language = (language or "").strip() or None
    lang_key = language.lower() if language else None
    created_floor = generate(feed_kind)[0].created
    feed_key = (feed_kind, lang_key, created_floor)
    if feed_key not in _feeds:
        for stale in [k for k in _feeds if k[:2] == (feed_kind, lang_key)]:
            del _feeds[stale]
        _feeds[feed_key] = RepositoryFeed.for_language(feed_kind, language, store=_store)
    return _feeds[feed_key]


def format_repositories(items) -> str:
    output = []
    for repo in items:
        language = repo.get("language") or "n/a"
        output.append(f"{repo['full_name']} | ★ {repo['stars']} | {language}")
        output.append(f"   {repo['url']}")
        desc = repo.get('description') or 'No description'
        output.append(f"   {desc[:150]}\n")
    return "\n".join(output)


# Core implementation functions (testable without FastMCP decorator)
def _discover_impl(language: str = None, feed_kind: str = "random") -> str:
    """
    Core implementation for loading the next chunk of the feed.

    Args:
        language: Optional programming language filter (e.g. 'rust').
        feed_kind: 'random' for popular repositories, 'new' for ones created in the last week.
    """
    if feed_kind not in FEED_KINDS:
        return f"Error: Unknown feed kind '{feed_kind}'. Use one of: {', '.join(FEED_KINDS)}."

    try:
        feed = get_feed(feed_kind, language)
        chunk = feed.request_more()
        if chunk.error_message:
            return f"Error: {chunk.error_message}"
        if not chunk.items:
            return "No repositories found."

        bucket = chunk.items[0].get("search_criteria", "")
        header = f"--- {len(chunk.items)} repositories (bucket {bucket}, {chunk.total_count_for_bucket} matches) ---"
        return header + "\n" + format_repositories(chunk.items)
    except Exception as e:
        logger.error(f"Error in discover_repositories_tool: {str(e)}")
        return f"Error in discover_repositories_tool: {str(e)}"


def _reset_impl() -> str:
    """Core implementation for resetting every feed and its stored progress."""
    try:
        for feed in _feeds.values():
            feed.reset()
        _feeds.clear()
        # Stored progress may exist from an earlier process
        _store.clear()
        logger.info("Feed progress reset")
        return "Feed reset. The next request starts a fresh pass over all repositories."
    except Exception as e:
        logger.error(f"Error in reset_feed_tool: {str(e)}")
        return f"Error in reset_feed_tool: {str(e)}"


# FastMCP decorated functions (wrappers around implementation)
@mcp.tool(name="discover_repositories")
def discover_repositories_tool(language: str = None, feed_kind: str = "random") -> str:
    """
    Load the next batch of popular GitHub repositories the user has not seen yet.

    Args:
        language: Optional programming language filter (e.g. 'python', 'rust').
        feed_kind: 'random' for popular repositories across all star ranges, 'new' for repositories created in the last 7 days.
    """
    return _discover_impl(language, feed_kind)


@mcp.tool(name="reset_feed")
def reset_feed_tool() -> str:
    """
    Forget which repositories have been shown and start the feed over.
    """
    return _reset_impl()

def run():
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    run()
