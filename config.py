"""
Configuration module for the RepoFeed MCP Server.
Handles path setup, environment variable loading, logging and feed constants.
"""

import pathlib
import os
from dotenv import load_dotenv
import logging
import sys

# Configure logging to output to stderr (required for MCP servers)
logging.basicConfig(
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stderr)],
    format="%(asctime)s [RepoFeed] %(message)s"
)

logger = logging.getLogger(__name__)

# Global storage directory for feed state and .env
# Default is ~/.repo_feed_mcp
DATA_DIR = pathlib.Path.home() / ".repo_feed_mcp"
DATA_DIR.mkdir(parents=True, exist_ok=True)

# Persisted key-value document holding the seen-page progress
STATE_FILE = DATA_DIR / "feed_state.json"

# Load environment variables (.env files)
# Strategy: 1. Project-level .env, then 2. Global storage .env
script_dir = pathlib.Path(__file__).parent
load_dotenv(script_dir / ".env")
load_dotenv(DATA_DIR / ".env")

GITHUB_API_BASE = "https://api.github.com"

# GitHub search returns at most 1000 results: 100 pages of 10
PER_PAGE = 10
MAX_PAGES = 100

# Key under which the seen-page progress is stored
SEEN_STORAGE_KEY = "github_seen_repositories"

# Attempts per "load more" before the error is reported to the caller
FEED_RETRY_LIMIT = 3

# Seconds before a single GitHub request is abandoned
REQUEST_TIMEOUT = 15

SYSTEM_PROMPT = """
You are a discovery assistant that shows users a never-ending feed of popular GitHub repositories.
Call 'discover_repositories' each time the user wants more, optionally filtered by language.
Call 'reset_feed' only when the user explicitly asks to start over.
"""

def get_data_dir():
    """Returns the absolute path to the data storage directory."""
    return DATA_DIR

def get_state_file():
    """Returns the path of the JSON file that stores feed progress."""
    return STATE_FILE

def get_github_token():
    """Returns the configured GitHub token, or None when unset."""
    token = os.getenv("GITHUB_TOKEN")
    if token and token.strip().lower() not in ("none", ""):
        return token.strip()
    return None

def get_system_prompt():
    """Returns the default system prompt for the AI model."""
    return SYSTEM_PROMPT
