"""
FeedSyncPipeline - one feed's incremental sync cycle.

lock -> fetch -> diff against watermark -> publish -> advance watermark -> unlock
"""
import logging
from datetime import datetime
from typing import List

from feedrelay.core.entities import Channel, Feed, Item, SyncOutcome, SyncResult
from feedrelay.delivery.base import Publisher
from feedrelay.ingestion.base import FeedFetcher
from feedrelay.services.kv_store import format_timestamp
from feedrelay.services.locks import LockManager
from feedrelay.services.watermarks import WatermarkStore

logger = logging.getLogger(__name__)


def select_new_items(channel: Channel, watermark: datetime) -> List[Item]:
    """
    Items published strictly after the watermark, oldest first.

    Feeds list newest first, so the selection is reversed; the stable sort
    then fixes up feeds that are not strictly ordered.
    """
    selected = [item for item in channel.items if item.pub_date > watermark]
    selected.reverse()
    return sorted(selected, key=lambda item: item.pub_date)


class FeedSyncPipeline:
    def __init__(
        self,
        *,
        fetcher: FeedFetcher,
        locks: LockManager,
        watermarks: WatermarkStore,
        publisher: Publisher,
    ):
        self.fetcher = fetcher
        self.locks = locks
        self.watermarks = watermarks
        self.publisher = publisher

    async def sync(self, feed: Feed) -> SyncResult:
        """
        Run one sync cycle for `feed`. Fetch, parse, store and publish errors
        propagate; the lock is released on every path.
        """
        extra = {"feed": feed.name}

        if await self.locks.is_locked(feed.name):
            logger.info(f"{feed.name} process lock exists - skipping", extra=extra)
            return SyncResult(feed.name, SyncOutcome.skipped_locked)

        async with self.locks.hold(feed.name) as acquired:
            if not acquired:
                logger.info(f"{feed.name} lock taken by another run - skipping", extra=extra)
                return SyncResult(feed.name, SyncOutcome.skipped_locked)

            channel = await self.fetcher.fetch(feed.url)
            watermark = await self.watermarks.get_or_init(feed.name, channel.build_date)

            if channel.build_date > watermark:
                new_items = select_new_items(channel, watermark)
                logger.info(
                    f"{feed.name}: {len(new_items)} new items since {format_timestamp(watermark)}",
                    extra=extra,
                )
                await self.publisher.publish(feed.name, new_items)
                await self.watermarks.update(feed.name, channel.build_date)
                return SyncResult(feed.name, SyncOutcome.published, published=len(new_items))

            if channel.build_date < watermark:
                logger.warning(
                    f"{feed.name}: build date {format_timestamp(channel.build_date)} is older "
                    f"than watermark {format_timestamp(watermark)}; keeping watermark",
                    extra=extra,
                )
                return SyncResult(feed.name, SyncOutcome.unchanged)

            await self.watermarks.update(feed.name, channel.build_date)
            logger.info(f"{feed.name}: no change since {format_timestamp(watermark)}", extra=extra)
            return SyncResult(feed.name, SyncOutcome.unchanged)
