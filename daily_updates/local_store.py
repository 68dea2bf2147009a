"""Local cache for records that could not be confirmed on the spreadsheet.

Records live in one string slot of a key-value store as a JSON array, newest
first. The cache performs read-modify-write without compare-and-swap: two
writers interleaving ``load`` and ``save`` can lose an update. Callers are
expected to run one operation at a time.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from daily_updates import app_paths
from daily_updates.models import DailyUpdate

logger = logging.getLogger(__name__)

LOCAL_RECORDS_KEY = "daily_updates_local"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryKeyValueStore:
    """Dictionary backed store, handy for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileKeyValueStore:
    """Persist string slots to a JSON object on disk.

    Each ``set`` rewrites the file through a temporary sibling and
    :func:`os.replace`, so readers never observe a half-written file.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else app_paths.data_path("local_store.json")
        self._lock = threading.Lock()
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, str]:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Local store %s unreadable, treating as empty: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): value for key, value in payload.items() if isinstance(value, str)}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._read_all()
            values[key] = value
            descriptor, temp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
            )
            try:
                with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                    json.dump(values, handle, ensure_ascii=False)
                os.replace(temp_name, self._path)
            except BaseException:
                try:
                    os.unlink(temp_name)
                except FileNotFoundError:
                    pass
                raise


class LocalRecordCache:
    """Read and write the list of locally held :class:`DailyUpdate` records."""

    def __init__(self, store: KeyValueStore, key: str = LOCAL_RECORDS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> List[DailyUpdate]:
        """Return cached records; any read or decode failure yields ``[]``."""

        try:
            stored = self._store.get(self._key)
        except Exception:
            logger.exception("Local cache read failed")
            return []
        if not stored:
            return []
        try:
            payload = json.loads(stored)
        except (TypeError, ValueError):
            logger.warning("Local cache payload is corrupt; ignoring it")
            return []
        if not isinstance(payload, list):
            return []
        records: List[DailyUpdate] = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(DailyUpdate.from_dict(entry))
            except Exception:
                logger.warning("Skipping unreadable cached record: %r", entry)
        return records

    def save(self, records: Sequence[DailyUpdate]) -> None:
        serialised = json.dumps([record.to_dict() for record in records], ensure_ascii=False)
        self._store.set(self._key, serialised)

    def prepend(self, record: DailyUpdate) -> None:
        records = self.load()
        records.insert(0, record)
        self.save(records)

    def replace(self, record: DailyUpdate) -> bool:
        """Overwrite the cached record sharing ``record.id``; False when absent."""

        records = self.load()
        for position, existing in enumerate(records):
            if existing.id == record.id:
                records[position] = record
                self.save(records)
                return True
        return False

    def remove(self, record_id: str) -> bool:
        records = self.load()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return False
        self.save(remaining)
        return True


__all__ = [
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "LOCAL_RECORDS_KEY",
    "LocalRecordCache",
    "MemoryKeyValueStore",
]
