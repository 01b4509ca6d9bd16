"""
Two-tier storage with transparent fallback.

The first StorageError raised by the primary tier switches the store to
the fallback tier for the rest of the session. At the switch the
fallback is seeded with the registered snapshot (the records the app
currently holds), then the failed operation is replayed on it, so
callers never see the error and the fallback holds the full data set.
There is no switching back.
"""

from typing import Optional

from budget.activity import ActivityLogger
from budget.services.storage.interface import RecordStore, Snapshot, StorageError


class FallbackStore(RecordStore):
    """Routes every call to the primary tier until it fails once."""

    def __init__(
        self,
        primary: RecordStore,
        fallback: RecordStore,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._primary = primary
        self._fallback = fallback
        self._activity = activity_logger or ActivityLogger()
        self._degraded = False
        self._snapshot: Optional[Snapshot] = None

    @property
    def degraded(self) -> bool:
        """True once the store has switched to the fallback tier."""
        return self._degraded

    @property
    def active(self) -> RecordStore:
        return self._fallback if self._degraded else self._primary

    def set_snapshot(self, snapshot: Optional[Snapshot]) -> None:
        self._snapshot = snapshot
        self._primary.set_snapshot(snapshot)
        self._fallback.set_snapshot(snapshot)

    async def _seed_fallback(self) -> None:
        if self._snapshot is None:
            return
        for collection, records in self._snapshot().items():
            if records:
                await self._fallback.put_many(collection, records)

    async def _call(self, operation: str, *args):
        if not self._degraded:
            try:
                return await getattr(self._primary, operation)(*args)
            except StorageError as e:
                self._degraded = True
                self._activity.log_storage_fallback(operation, str(e))
                await self._seed_fallback()
        return await getattr(self._fallback, operation)(*args)

    async def load_all(self, collection: str) -> list[dict]:
        return await self._call("load_all", collection)

    async def put(self, collection: str, record: dict) -> None:
        await self._call("put", collection, record)

    async def put_many(self, collection: str, records: list[dict]) -> None:
        await self._call("put_many", collection, records)

    async def delete(self, collection: str, key: str) -> bool:
        return await self._call("delete", collection, key)

    async def clear(self, collection: str) -> None:
        await self._call("clear", collection)
