"""
Ingestion from RSS sources
"""
import io
import logging
from datetime import datetime
from typing import List

import feedparser
import httpx

from feedrelay.core.entities import Channel, Item
from feedrelay.core.errors import FetchError, ParseError
from feedrelay.ingestion.base import FeedFetcher
from feedrelay.services.config import DEFAULT_DATE_FORMAT

logger = logging.getLogger(__name__)


def parse_date(text: str, date_format: str, what: str) -> datetime:
    """Parse with the single configured format; no fallbacks."""
    try:
        return datetime.strptime(text.strip(), date_format)
    except ValueError as e:
        raise ParseError(f"Cannot parse {what} {text!r} with format {date_format!r}") from e


def parse_channel(body: bytes, date_format: str = DEFAULT_DATE_FORMAT) -> Channel:
    # Item text is forwarded as published, without feedparser's HTML cleanup
    parsed = feedparser.parse(io.BytesIO(body), sanitize_html=False, resolve_relative_uris=False)

    if not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "unrecognized document"
        raise ParseError(f"Response is not a valid feed: {reason}")

    # feedparser exposes RSS <lastBuildDate> as `updated`; its mapping get()
    # falls back to the channel <pubDate>, so look the key up directly
    raw_build_date = dict.get(parsed.feed, "updated")
    if not raw_build_date:
        raise ParseError("Feed has no build date")
    build_date = parse_date(raw_build_date, date_format, "build date")

    items: List[Item] = []
    for entry in parsed.entries:
        raw_pub_date = entry.get("published")
        if not raw_pub_date:
            raise ParseError(f"Item {entry.get('link') or entry.get('title')!r} has no publish date")

        items.append(
            Item(
                title=entry.get("title", ""),
                description=entry.get("summary", ""),
                link=entry.get("link", ""),
                pub_date=parse_date(raw_pub_date, date_format, "publish date"),
                raw_pub_date=raw_pub_date,
            )
        )

    return Channel(build_date=build_date, items=items)


class RSSFetcher(FeedFetcher):
    def __init__(self, client: httpx.AsyncClient, date_format: str = DEFAULT_DATE_FORMAT):
        self.client = client
        self.date_format = date_format

    async def fetch(self, url: str) -> Channel:
        try:
            resp = await self.client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        if resp.status_code != 200:
            # Not fatal by itself; the body decides
            logger.warning(f"Getting {resp.status_code} from {url}")

        channel = parse_channel(resp.content, self.date_format)
        logger.info(f"Fetched {len(channel.items)} items from {url}")
        return channel
