import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime, timedelta
from typing import List, Optional

import httpx

from feedrelay.core.entities import Feed, SyncOutcome, SyncResult
from feedrelay.core.errors import RelayError
from feedrelay.delivery.base import Publisher
from feedrelay.delivery.file_delivery import FilePublisher
from feedrelay.delivery.mastodon_delivery import MastodonPublisher
from feedrelay.ingestion.feed_list import feeds_from_entries, load_feed_list
from feedrelay.ingestion.rss import RSSFetcher
from feedrelay.services.config import Config, load_config
from feedrelay.services.database import Database
from feedrelay.services.kv_store import SqliteKeyValueStore
from feedrelay.services.locks import LockManager
from feedrelay.services.logging import setup_logging
from feedrelay.services.scheduler import next_run_time, seconds_until
from feedrelay.services.watermarks import WatermarkStore
from feedrelay.workflows import FeedSyncPipeline, run_sync

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Republish new RSS items to Mastodon")
    parser.add_argument("--config", help="Path to config.yml (default: resources/config.yml)")
    parser.add_argument("--loop", action="store_true", help="Keep running every POLL_INTERVAL seconds")
    parser.add_argument("--dry-run", action="store_true", help="Write statuses to files instead of posting")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def resolve_feeds(config: Config, client: httpx.AsyncClient) -> List[Feed]:
    if config.FEED_LIST_URL:
        return await load_feed_list(client, config.FEED_LIST_URL)
    return feeds_from_entries(config.feeds)


async def run_once(
    config: Config,
    *,
    dry_run: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[SyncResult]:
    start_time = time.perf_counter()
    logger.info("RSS relay starting")

    # ----------------------------
    # Initialize shared services
    # ----------------------------
    store = SqliteKeyValueStore(Database(config.DATABASE_PATH))
    locks = LockManager(
        store,
        config.KEY_PREFIX,
        stale_after=timedelta(minutes=config.LOCK_STALE_MINUTES),
    )
    watermarks = WatermarkStore(store, config.KEY_PREFIX)

    async with httpx.AsyncClient(
        timeout=config.HTTP_TIMEOUT,
        follow_redirects=True,
        transport=transport,
    ) as client:
        publisher: Publisher
        if dry_run:
            publisher = FilePublisher(config.DRY_RUN_OUTPUT_DIR, status_suffix=config.STATUS_SUFFIX)
        else:
            publisher = MastodonPublisher(
                client,
                api_uri=config.MSTD_API_URI,
                access_token=config.MSTD_ACCESS_TOKEN,
                status_suffix=config.STATUS_SUFFIX,
                visibility=config.STATUS_VISIBILITY,
            )

        pipeline = FeedSyncPipeline(
            fetcher=RSSFetcher(client, config.DATE_FORMAT),
            locks=locks,
            watermarks=watermarks,
            publisher=publisher,
        )

        feeds = await resolve_feeds(config, client)
        if not feeds:
            logger.warning("No feeds configured")

        results = await run_sync(
            feeds,
            pipeline,
            isolate_failures=config.ISOLATE_FEED_FAILURES,
        )

    published = sum(r.published for r in results)
    failed = [r.feed_name for r in results if r.outcome is SyncOutcome.failed]
    logger.info(f"RSS relay finished: {len(results)} feeds, {published} published, {len(failed)} failed")
    if failed:
        logger.error(f"Failed feeds: {', '.join(failed)}")
    logger.info(f"Total time: {time.perf_counter() - start_time}")
    return results


def exit_code(results: List[SyncResult]) -> int:
    return 1 if any(r.outcome is SyncOutcome.failed for r in results) else 0


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    config = load_config(args.config)

    if not args.loop:
        try:
            return exit_code(await run_once(config, dry_run=args.dry_run))
        except RelayError as e:
            logger.exception(f"Run aborted: {e}")
            return 1

    while True:
        started = datetime.now()
        try:
            await run_once(config, dry_run=args.dry_run)
        except Exception as e:
            logger.exception(f"Run failed: {e}")
        run_at = next_run_time(config.POLL_INTERVAL, started)
        logger.info(f"Next run at {run_at.isoformat(timespec='seconds')}")
        await asyncio.sleep(seconds_until(run_at))


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
