"""
Feed list loading - an array of {name, url} pairs from a URL or a local file.
"""
import logging
from pathlib import Path
from typing import Any, List

import httpx
import yaml

from feedrelay.core.entities import Feed
from feedrelay.core.errors import FetchError, ParseError
from feedrelay.core.keys import camel_case
from feedrelay.services.config import FeedConfig

logger = logging.getLogger(__name__)


def feeds_from_entries(entries: Any) -> List[Feed]:
    """
    Build feeds from decoded entries. Entries missing `name` or `url` are
    skipped; a repeated name (compared by its store key) keeps its first
    definition.
    """
    if not isinstance(entries, list):
        logger.warning(f"Feed list is not an array ({type(entries).__name__}); nothing to sync")
        return []

    feeds: List[Feed] = []
    seen = set()
    for entry in entries:
        if isinstance(entry, FeedConfig):
            name, url = entry.name, entry.url
        elif isinstance(entry, dict):
            name, url = entry.get("name"), entry.get("url")
        else:
            name = url = None

        if not isinstance(name, str) or not isinstance(url, str) or not name or not url:
            logger.debug(f"Skipping malformed feed entry: {entry!r}")
            continue
        key = camel_case(name)
        if not key:
            logger.warning(f"Feed name {name!r} has no letters or digits; skipping")
            continue
        # Names that differ only in case or punctuation share store keys
        if key in seen:
            logger.warning(f"Duplicate feed name {name!r}; keeping the first entry")
            continue

        seen.add(key)
        feeds.append(Feed(name=name, url=url))

    return feeds


def parse_feed_list(document: str) -> List[Feed]:
    """Parse a JSON or YAML document holding the feed array."""
    try:
        entries = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise ParseError(f"Feed list is not valid JSON/YAML: {e}") from e
    return feeds_from_entries(entries)


async def load_feed_list(client: httpx.AsyncClient, source: str) -> List[Feed]:
    if source.startswith(("http://", "https://")):
        try:
            resp = await client.get(source)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Cannot fetch feed list from {source}: {e}") from e
        document = resp.text
    else:
        try:
            document = Path(source).read_text(encoding="utf-8")
        except OSError as e:
            raise FetchError(f"Cannot read feed list {source}: {e}") from e

    feeds = parse_feed_list(document)
    logger.info(f"Loaded {len(feeds)} feeds from {source}")
    return feeds
