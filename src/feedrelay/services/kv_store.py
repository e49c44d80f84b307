"""
Key/value store capability used for watermarks and locks.

Two implementations: SQLite (via the shared Database helper) for real runs,
and an in-memory dict for tests and one-off dry runs.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import aiosqlite

from feedrelay.core.errors import StoreError
from feedrelay.core.keys import StoreKey
from feedrelay.services.database import Database

logger = logging.getLogger(__name__)

STORE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def utcnow() -> datetime:
    """Naive UTC now, truncated to the store's one-second resolution."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def format_timestamp(value: datetime) -> str:
    return value.strftime(STORE_DATE_FORMAT)


def parse_timestamp(text: str) -> datetime:
    return datetime.strptime(text, STORE_DATE_FORMAT)


@dataclass(frozen=True)
class StoredValue:
    value: Optional[str]
    updated_at: datetime


class KeyValueStore(ABC):
    """
    Get/set/delete by key, no transactions. `insert_if_absent` is the one
    conditional write, used for lock acquisition.
    """

    @abstractmethod
    async def get(self, key: StoreKey) -> Optional[StoredValue]:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: StoreKey, value: Optional[str], *, at: datetime) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: StoreKey) -> None:
        """Remove the key. Deleting a missing key is not an error."""
        raise NotImplementedError

    @abstractmethod
    async def insert_if_absent(
        self,
        key: StoreKey,
        value: Optional[str],
        *,
        at: datetime,
        stale_before: datetime,
    ) -> bool:
        """
        Write the record if the key is missing or was last written before
        `stale_before`. Returns True when the write happened.
        """
        raise NotImplementedError


class SqliteKeyValueStore(KeyValueStore):
    def __init__(self, database: Database):
        self.db = database
        self._initialized = False

    async def initialize(self) -> None:
        if not self._initialized:
            try:
                await self.db.init_tables()
            except aiosqlite.Error as e:
                raise StoreError(f"Cannot initialize store at {self.db.path}: {e}") from e
            self._initialized = True

    async def get(self, key: StoreKey) -> Optional[StoredValue]:
        await self.initialize()
        try:
            row = await self.db.fetchone(
                "SELECT value, updated_at FROM kv_store WHERE key = ?",
                (str(key),),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Read failed for {key}: {e}") from e

        if row is None:
            return None
        try:
            updated_at = parse_timestamp(row[1])
        except (TypeError, ValueError) as e:
            raise StoreError(f"Corrupt updated_at for {key}: {row[1]!r}") from e
        return StoredValue(value=row[0], updated_at=updated_at)

    async def set(self, key: StoreKey, value: Optional[str], *, at: datetime) -> None:
        await self.initialize()
        try:
            await self.db.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (str(key), value, format_timestamp(at)),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Write failed for {key}: {e}") from e

    async def delete(self, key: StoreKey) -> None:
        await self.initialize()
        try:
            await self.db.execute("DELETE FROM kv_store WHERE key = ?", (str(key),))
        except aiosqlite.Error as e:
            raise StoreError(f"Delete failed for {key}: {e}") from e

    async def insert_if_absent(
        self,
        key: StoreKey,
        value: Optional[str],
        *,
        at: datetime,
        stale_before: datetime,
    ) -> bool:
        await self.initialize()
        try:
            changed = await self.db.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                WHERE kv_store.updated_at < ?
                """,
                (str(key), value, format_timestamp(at), format_timestamp(stale_before)),
            )
        except aiosqlite.Error as e:
            raise StoreError(f"Conditional write failed for {key}: {e}") from e
        return changed > 0


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, StoredValue]] = None):
        self.records: Dict[str, StoredValue] = dict(initial or {})

    async def get(self, key: StoreKey) -> Optional[StoredValue]:
        return self.records.get(str(key))

    async def set(self, key: StoreKey, value: Optional[str], *, at: datetime) -> None:
        self.records[str(key)] = StoredValue(value=value, updated_at=at)

    async def delete(self, key: StoreKey) -> None:
        self.records.pop(str(key), None)

    async def insert_if_absent(
        self,
        key: StoreKey,
        value: Optional[str],
        *,
        at: datetime,
        stale_before: datetime,
    ) -> bool:
        existing = self.records.get(str(key))
        if existing is not None and existing.updated_at >= stale_before:
            return False
        self.records[str(key)] = StoredValue(value=value, updated_at=at)
        return True
