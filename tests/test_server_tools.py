from unittest.mock import MagicMock, patch

import pytest

import server
from criteria import SearchCriteria
from feed import FeedChunk
from server import _discover_impl, _reset_impl


@pytest.fixture(autouse=True)
def clean_feeds():
    """Each test starts without cached feeds."""
    server._feeds.clear()
    yield
    server._feeds.clear()


@patch("server.RepositoryFeed")
def test_discover_tool_returns_formatted_results(mock_feed_cls):
    mock_feed = MagicMock()
    mock_feed.request_more.return_value = FeedChunk(
        items=[
            {
                "full_name": "owner/repo1",
                "url": "https://github.com/owner/repo1",
                "stars": 2400,
                "language": "Rust",
                "description": "A test repository",
                "search_criteria": '{"stars":"2000...4000"}',
            }
        ],
        total_count_for_bucket=812,
    )
    mock_feed_cls.for_language.return_value = mock_feed

    output = _discover_impl("rust")

    mock_feed_cls.for_language.assert_called_with("random", "rust", store=server._store)
    assert '--- 1 repositories (bucket {"stars":"2000...4000"}, 812 matches) ---' in output
    assert "owner/repo1 | ★ 2400 | Rust" in output
    assert "A test repository" in output


@patch("server.RepositoryFeed")
def test_discover_tool_reuses_the_feed_per_language(mock_feed_cls):
    mock_feed_cls.for_language.return_value.request_more.return_value = FeedChunk()

    _discover_impl("Go")
    _discover_impl("go ")
    _discover_impl(None)

    assert mock_feed_cls.for_language.call_count == 2


@patch("server.RepositoryFeed")
def test_discover_tool_surfaces_error_message(mock_feed_cls):
    mock_feed_cls.for_language.return_value.request_more.return_value = FeedChunk(
        error_message="Rate limit exceeded. Please add a GitHub token for extended access or try again later."
    )

    output = _discover_impl()

    assert output.startswith("Error: Rate limit exceeded")


def test_discover_tool_rejects_unknown_feed_kind():
    assert "Unknown feed kind 'weekly'" in _discover_impl(feed_kind="weekly")


@patch("server._store")
def test_reset_tool_resets_feeds_and_stored_progress(mock_store):
    feed = MagicMock()
    server._feeds[("random", None, None)] = feed

    msg = _reset_impl()

    feed.reset.assert_called_once()
    mock_store.clear.assert_called_once()
    assert server._feeds == {}
    assert "Feed reset" in msg


@patch("server.RepositoryFeed")
def test_discover_tool_reports_unexpected_errors(mock_feed_cls):
    mock_feed_cls.for_language.return_value.request_more.side_effect = OSError("No space left on device")

    output = _discover_impl("python")

    assert output == "Error in discover_repositories_tool: No space left on device"


@patch("server.generate")
@patch("server.RepositoryFeed")
def test_new_feed_is_rebuilt_when_its_date_floor_moves(mock_feed_cls, mock_generate):
    mock_feed_cls.for_language.side_effect = lambda *args, **kwargs: MagicMock()

    mock_generate.return_value = [SearchCriteria(stars=">10", created=">2024-05-01")]
    first = server.get_feed("new")
    assert server.get_feed("new") is first

    mock_generate.return_value = [SearchCriteria(stars=">10", created=">2024-05-02")]
    second = server.get_feed("new")

    assert second is not first
    assert mock_feed_cls.for_language.call_count == 2
    assert list(server._feeds) == [("new", None, ">2024-05-02")]
