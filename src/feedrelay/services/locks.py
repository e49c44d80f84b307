"""
LockManager - self-expiring per-feed process locks.

A lock record's timestamp is all that matters; its value is unused. Records
older than `stale_after` are treated as abandoned by a crashed run and are
reclaimed by the next check.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable

from feedrelay.core.keys import StoreKey
from feedrelay.services.kv_store import KeyValueStore, utcnow

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER = timedelta(minutes=5)


class LockManager:
    def __init__(
        self,
        store: KeyValueStore,
        prefix: str,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.prefix = prefix
        self.stale_after = stale_after
        self.clock = clock

    def _key(self, feed_name: str) -> StoreKey:
        return StoreKey.lock(self.prefix, feed_name)

    async def is_locked(self, feed_name: str) -> bool:
        """
        True if a live lock exists. A stale lock is deleted and reported as
        unlocked.
        """
        record = await self.store.get(self._key(feed_name))
        if record is None:
            return False

        if record.updated_at < self.clock() - self.stale_after:
            logger.warning(
                f"Lock for {feed_name} is older than {self.stale_after}; reclaiming it",
                extra={"feed": feed_name},
            )
            await self.release(feed_name)
            return False

        return True

    async def acquire(self, feed_name: str) -> None:
        """
        Write a lock record unconditionally. Callers must check `is_locked`
        first; prefer `try_acquire` which does both in one write.
        """
        await self.store.set(self._key(feed_name), None, at=self.clock())
        logger.info(f"Process lock taken for {feed_name}", extra={"feed": feed_name})

    async def try_acquire(self, feed_name: str) -> bool:
        """Take the lock if it is free or stale, as a single conditional write."""
        now = self.clock()
        acquired = await self.store.insert_if_absent(
            self._key(feed_name),
            None,
            at=now,
            stale_before=now - self.stale_after,
        )
        if acquired:
            logger.info(f"Process lock taken for {feed_name}", extra={"feed": feed_name})
        return acquired

    async def release(self, feed_name: str) -> None:
        await self.store.delete(self._key(feed_name))
        logger.debug(f"Process lock released for {feed_name}", extra={"feed": feed_name})

    @asynccontextmanager
    async def hold(self, feed_name: str) -> AsyncIterator[bool]:
        """
        Yield whether the lock was obtained. An obtained lock is released on
        every exit path.
        """
        acquired = await self.try_acquire(feed_name)
        try:
            yield acquired
        finally:
            if acquired:
                await self.release(feed_name)
