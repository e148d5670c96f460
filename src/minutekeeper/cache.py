"""Local document caches: synchronous lookup of records by id."""

from __future__ import annotations

import copy
import json
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from .errors import CacheError

log = logging.getLogger(__name__)


class DocumentCache(Protocol):
    def find_one(self, doc_id: str) -> dict | None: ...


class InMemoryCache:
    """Dict-backed cache, keyed by document id."""

    def __init__(self, records: Mapping[str, dict] | None = None):
        self._records: dict[str, dict] = dict(records or {})

    def find_one(self, doc_id: str) -> dict | None:
        record = self._records.get(doc_id)
        return copy.deepcopy(record) if record is not None else None

    def put(self, record: dict) -> None:
        self._records[record["_id"]] = record

    def __len__(self) -> int:
        return len(self._records)


class JsonFileCache:
    """One collection of a JSON snapshot file.

    The snapshot maps collection names to ``{id: record}`` objects::

        {"minutes": {"AaBb": {...}}, "meetingSeries": {"CcDd": {...}}}
    """

    def __init__(self, path: Path, collection: str):
        self.path = path
        self.collection = collection
        self._records: dict[str, dict] = {}
        self._lock = threading.Lock()
        self.reload()

    def read(self) -> dict[str, dict]:
        """Read this collection from the snapshot file without applying it."""
        if not self.path.exists():
            log.warning("Cache snapshot not found at %s", self.path)
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise CacheError(f"Failed to read cache snapshot {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise CacheError(f"Invalid cache snapshot: {self.path}")
        records = raw.get(self.collection) or {}
        if not isinstance(records, dict):
            raise CacheError(
                f"Collection {self.collection!r} in {self.path} is not an object"
            )
        return records

    def replace(self, records: dict[str, dict]) -> None:
        with self._lock:
            self._records = records
        log.debug("Loaded %d %s record(s) from %s", len(records), self.collection, self.path)

    def reload(self) -> None:
        """Re-read the snapshot file."""
        self.replace(self.read())

    def find_one(self, doc_id: str) -> dict | None:
        with self._lock:
            record = self._records.get(doc_id)
        if record is None:
            return None
        record = copy.deepcopy(record)
        # Snapshots keyed by id may leave _id out of the record body
        record.setdefault("_id", doc_id)
        return record

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
