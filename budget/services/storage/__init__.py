"""
Storage Services Package

Provides the record store interface and its implementations: Google
Sheets (primary), local JSON files (fallback) and in-memory (tests).
"""

from budget.services.storage.fallback import FallbackStore
from budget.services.storage.google_sheets import GoogleSheetsClient, GoogleSheetsStore
from budget.services.storage.interface import (
    ACCOUNTS,
    COLLECTIONS,
    SETTINGS,
    TRANSACTIONS,
    ConnectionError,
    NotFoundError,
    RecordStore,
    StorageError,
)
from budget.services.storage.local import InMemoryStore, JsonFileStore
from budget.services.storage.repository import LedgerRepository

__all__ = [
    # Interface
    "RecordStore",
    "ACCOUNTS",
    "COLLECTIONS",
    "SETTINGS",
    "TRANSACTIONS",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "FallbackStore",
    "GoogleSheetsClient",
    "GoogleSheetsStore",
    "InMemoryStore",
    "JsonFileStore",
    "LedgerRepository",
]
