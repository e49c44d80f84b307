"""
WatermarkStore - per-feed record of the last processed build date.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from feedrelay.core.errors import ParseError
from feedrelay.core.keys import StoreKey
from feedrelay.services.kv_store import (
    KeyValueStore,
    format_timestamp,
    parse_timestamp,
    utcnow,
)

logger = logging.getLogger(__name__)


class WatermarkStore:
    """
    Stores the feed's own last-build-date (not the newest item's date).
    Items published at or before the watermark count as already handled.
    """

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.prefix = prefix
        self.clock = clock

    def _key(self, feed_name: str) -> StoreKey:
        return StoreKey.watermark(self.prefix, feed_name)

    async def get(self, feed_name: str) -> Optional[datetime]:
        """
        Return the stored watermark, or None if the feed was never seen.

        Raises:
            ParseError: if the stored value is not a valid timestamp
        """
        record = await self.store.get(self._key(feed_name))
        if record is None:
            return None
        try:
            return parse_timestamp(record.value or "")
        except ValueError as e:
            raise ParseError(
                f"Stored watermark for {feed_name} is malformed: {record.value!r}"
            ) from e

    async def get_or_init(self, feed_name: str, default_date: datetime) -> datetime:
        """
        Return the stored watermark, bootstrapping it with `default_date` on
        first sight of the feed so no backlog is republished.
        """
        stored = await self.get(feed_name)
        if stored is not None:
            return stored

        await self.update(feed_name, default_date)
        logger.info(
            f"Initialized watermark for {feed_name} at {format_timestamp(default_date)}",
            extra={"feed": feed_name},
        )
        return default_date

    async def update(self, feed_name: str, new_date: datetime) -> None:
        await self.store.set(
            self._key(feed_name),
            format_timestamp(new_date),
            at=self.clock(),
        )
        logger.debug(
            f"Watermark for {feed_name} set to {format_timestamp(new_date)}",
            extra={"feed": feed_name},
        )
