"""Configuration constants for hackstack."""

import os
from pathlib import Path

# Remote endpoints.
HN_API_BASE: str = "https://hacker-news.firebaseio.com/v0"
ALGOLIA_API_BASE: str = "https://hn.algolia.com/api/v1"

# Seconds before a single HTTP request is abandoned.
REQUEST_TIMEOUT: float = 10.0

# In-process remote cache validity (stories per category, comments per id).
STORY_CACHE_TTL: float = 300.0
COMMENT_CACHE_TTL: float = 300.0

# Story listings.
STORY_LIST_LIMIT: int = 100
MAX_CONCURRENT_REQUESTS: int = 20

# Search.
SEARCH_MIN_COMMENTS: int = 5
SEARCH_MAX_HITS: int = 50

# Comment tree loading.
COMMENT_PAGE_SIZE: int = 30
MAX_COMMENTS_TO_LOAD: int = 300
COMMENT_CACHE_VALIDITY: float = 24 * 60 * 60
LOAD_THROTTLE_INTERVAL: float = 0.5
MAX_CONCURRENT_REPLIES: int = 2
MAX_REPLY_RETRIES: int = 2
REPLY_RETRY_DELAY: float = 1.0

# Local comments older than this are removed by the daily cleanup.
COMMENT_RETENTION: float = 7 * 24 * 60 * 60

# Directory with the local database. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/hackstack").expanduser(),
    Path("~/.hackstack").expanduser(),
]

DATABASE_FILENAME: str = "hackstack.db"

# Cache directory, used only when --cache is passed.
API_CACHE_PREFIX: str = "/tmp/hackstack-cache/cache-"


def resolve_data_directory() -> Path:
    """Return the data directory: $HACKSTACK_DATA_DIR, else the first existing candidate.

    Falls back to the first candidate when none exists yet.
    """
    override = os.environ.get("HACKSTACK_DATA_DIR")
    if override:
        return Path(override).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
