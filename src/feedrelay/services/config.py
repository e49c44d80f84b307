"""
Loads and handles config from config.yml
Mastodon credentials (MSTD_API_URI, MSTD_ACCESS_TOKEN) are loaded from .env for security
"""
import logging
import os
from typing import List, Dict, Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S GMT"


class FeedConfig(BaseModel):
    """A feed listed inline in config.yml."""
    name: str
    url: str


class Config(BaseModel):
    # Core
    DATABASE_PATH: str = "data/feedrelay.db"
    KEY_PREFIX: str = "wsj-rss"

    # Feed list: remote/local document, or inline list when unset
    FEED_LIST_URL: Optional[str] = None
    feeds: List[FeedConfig] = []

    # Sync
    DATE_FORMAT: str = DEFAULT_DATE_FORMAT
    LOCK_STALE_MINUTES: int = 5
    HTTP_TIMEOUT: float = 30.0
    ISOLATE_FEED_FAILURES: bool = True
    POLL_INTERVAL: int = 300

    # Publishing
    STATUS_SUFFIX: str = ""
    STATUS_VISIBILITY: str = "public"
    DRY_RUN_OUTPUT_DIR: str = "output"
    MSTD_API_URI: Optional[str] = None
    MSTD_ACCESS_TOKEN: Optional[str] = None


def _bool(value: str | bool) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path() -> Optional[str]:
    """Get the path to config.yml, handling different working directories."""
    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    return None


def _parse_feeds(entries: Any) -> List[FeedConfig]:
    feeds = []
    for entry in entries or []:
        if not isinstance(entry, dict) or not entry.get("name") or not entry.get("url"):
            logger.debug(f"Skipping malformed inline feed entry: {entry!r}")
            continue
        feeds.append(FeedConfig(name=str(entry["name"]), url=str(entry["url"])))
    return feeds


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and credentials from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config_path = path or _get_config_path()
    config: Dict[str, Any] = {}

    if config_path:
        with open(config_path, 'r') as file:
            config = yaml.safe_load(file) or {}
    elif path is None:
        logger.warning("No resources/config.yml found, using defaults")

    return Config(
        DATABASE_PATH=config.get("DATABASE_PATH", "data/feedrelay.db"),
        KEY_PREFIX=config.get("KEY_PREFIX", "wsj-rss"),

        FEED_LIST_URL=os.getenv("FEED_LIST_URL") or config.get("FEED_LIST_URL"),
        feeds=_parse_feeds(config.get("feeds")),

        DATE_FORMAT=config.get("DATE_FORMAT", DEFAULT_DATE_FORMAT),
        LOCK_STALE_MINUTES=int(config.get("LOCK_STALE_MINUTES", 5)),
        HTTP_TIMEOUT=float(config.get("HTTP_TIMEOUT", 30)),
        ISOLATE_FEED_FAILURES=_bool(config.get("ISOLATE_FEED_FAILURES", True)),
        POLL_INTERVAL=int(os.getenv("POLL_INTERVAL", config.get("POLL_INTERVAL", 300))),

        STATUS_SUFFIX=config.get("STATUS_SUFFIX", "") or "",
        STATUS_VISIBILITY=config.get("STATUS_VISIBILITY", "public"),
        DRY_RUN_OUTPUT_DIR=config.get("DRY_RUN_OUTPUT_DIR", "output"),
        MSTD_API_URI=os.getenv("MSTD_API_URI"),
        MSTD_ACCESS_TOKEN=os.getenv("MSTD_ACCESS_TOKEN"),
    )
