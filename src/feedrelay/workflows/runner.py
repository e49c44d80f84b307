import logging
from typing import Iterable, List

from feedrelay.core.entities import Feed, SyncOutcome, SyncResult
from feedrelay.core.errors import RelayError
from feedrelay.workflows.feed_sync import FeedSyncPipeline

logger = logging.getLogger(__name__)


async def run_sync(
    feeds: Iterable[Feed],
    pipeline: FeedSyncPipeline,
    *,
    isolate_failures: bool = True,
) -> List[SyncResult]:
    """
    Sync feeds one after another.

    With `isolate_failures` a failing feed is logged and recorded, and the
    rest still run. Without it the first error aborts the remaining feeds.
    """
    results: List[SyncResult] = []

    for feed in feeds:
        try:
            logger.info(f"Syncing feed: {feed.name} ({feed.url})", extra={"feed": feed.name})
            results.append(await pipeline.sync(feed))
        except RelayError as e:
            if not isolate_failures:
                raise
            logger.exception(f"Sync failed: {feed.name}: {e}", extra={"feed": feed.name})
            results.append(SyncResult(feed.name, SyncOutcome.failed, error=str(e)))

    return results
