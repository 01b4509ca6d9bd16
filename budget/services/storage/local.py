"""
Local Storage Implementations

JsonFileStore keeps one JSON file per collection in the data
directory. It is the tier the app falls back to when the primary
store is unreachable, and the primary tier when Google Sheets is not
configured.

InMemoryStore keeps everything in a dict and is used by tests and
as a last resort when even the data directory is unusable.
"""

import copy
import json
import os
from pathlib import Path
from typing import Optional

from budget.services.storage.interface import (
    RecordStore,
    StorageError,
    key_field,
    record_key,
)


class InMemoryStore(RecordStore):
    """Record store backed by a dict of lists. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, list[dict]]] = None):
        self._data: dict[str, list[dict]] = {}
        for collection, records in (initial or {}).items():
            self._data[collection] = copy.deepcopy(records)

    async def load_all(self, collection: str) -> list[dict]:
        key_field(collection)
        return copy.deepcopy(self._data.get(collection, []))

    async def put(self, collection: str, record: dict) -> None:
        key = record_key(collection, record)
        records = self._data.setdefault(collection, [])
        for idx, existing in enumerate(records):
            if record_key(collection, existing) == key:
                records[idx] = copy.deepcopy(record)
                return
        records.append(copy.deepcopy(record))

    async def delete(self, collection: str, key: str) -> bool:
        records = self._data.get(collection, [])
        for idx, existing in enumerate(records):
            if record_key(collection, existing) == str(key):
                del records[idx]
                return True
        return False

    async def clear(self, collection: str) -> None:
        key_field(collection)
        self._data[collection] = []


class JsonFileStore(RecordStore):
    """
    Record store backed by `<data_dir>/<collection>.json`.

    Each write rewrites the collection file through a temporary file
    and an atomic rename, so a crash never leaves half a file behind.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir).expanduser()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, collection: str) -> Path:
        key_field(collection)
        return self._data_dir / f"{collection}.json"

    def _read(self, collection: str) -> list[dict]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}")
        if not isinstance(data, list):
            raise StorageError(f"Unexpected content in {path}: expected a list")
        return [record for record in data if isinstance(record, dict)]

    def _write(self, collection: str, records: list[dict]) -> None:
        path = self._path(collection)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(records, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    async def load_all(self, collection: str) -> list[dict]:
        return self._read(collection)

    async def put(self, collection: str, record: dict) -> None:
        key = record_key(collection, record)
        records = self._read(collection)
        for idx, existing in enumerate(records):
            if existing.get(key_field(collection)) is not None and record_key(collection, existing) == key:
                records[idx] = record
                break
        else:
            records.append(record)
        self._write(collection, records)

    async def put_many(self, collection: str, records: list[dict]) -> None:
        stored = self._read(collection)
        field = key_field(collection)
        index = {str(r.get(field)): i for i, r in enumerate(stored)}
        for record in records:
            key = record_key(collection, record)
            if key in index:
                stored[index[key]] = record
            else:
                index[key] = len(stored)
                stored.append(record)
        self._write(collection, stored)

    async def delete(self, collection: str, key: str) -> bool:
        field = key_field(collection)
        records = self._read(collection)
        remaining = [r for r in records if str(r.get(field)) != str(key)]
        if len(remaining) == len(records):
            return False
        self._write(collection, remaining)
        return True

    async def clear(self, collection: str) -> None:
        self._write(collection, [])
