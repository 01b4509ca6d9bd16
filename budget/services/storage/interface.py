"""
Abstract Storage Interface

DESIGN DECISION: Storage is a plain record store: named collections of
JSON-compatible dicts, each identified by a key field. Typed access,
validation and referential integrity live one level up, in the
LedgerRepository, so every backend stays this small:
1. load every record of a collection
2. insert-or-replace one record
3. delete one record by key
4. clear a collection
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional


ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
SETTINGS = "settings"

COLLECTIONS = (ACCOUNTS, TRANSACTIONS, SETTINGS)

KEY_FIELDS = {
    ACCOUNTS: "id",
    TRANSACTIONS: "id",
    SETTINGS: "key",
}

# Current records per collection, used to seed a fallback tier
Snapshot = Callable[[], dict[str, list[dict]]]


def key_field(collection: str) -> str:
    """Name of the field that identifies records in a collection."""
    try:
        return KEY_FIELDS[collection]
    except KeyError:
        raise StorageError(f"Unknown collection: {collection}")


def record_key(collection: str, record: dict) -> str:
    """Key of a record, as a string."""
    field = key_field(collection)
    key = record.get(field)
    if key is None or key == "":
        raise StorageError(f"Record in '{collection}' has no '{field}'")
    return str(key)


class RecordStore(ABC):
    """
    Abstract interface for record storage.

    Any storage implementation (Google Sheets, local files, memory)
    must implement these methods.
    """

    @abstractmethod
    async def load_all(self, collection: str) -> list[dict]:
        """
        Load every record of a collection.

        Returns:
            Records in storage order (empty list if the collection is empty)

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def put(self, collection: str, record: dict) -> None:
        """
        Insert a record, or replace the one with the same key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """
        Delete a record by key.

        Returns:
            True if a record was removed, False if none had that key
        """
        pass

    @abstractmethod
    async def clear(self, collection: str) -> None:
        """Remove every record of a collection."""
        pass

    async def put_many(self, collection: str, records: list[dict]) -> None:
        """Insert or replace several records."""
        for record in records:
            await self.put(collection, record)

    def set_snapshot(self, snapshot: Optional[Snapshot]) -> None:
        """
        Register a callable returning the current records per collection.

        Only tiered stores use it, to seed a fallback tier when they
        switch to it. Single-tier stores ignore it.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
