# file: nation_runtime/record_store.py
"""
Record Store — contract shared by every nation store.

The turn engine needs exactly three operations:

    list()            -> set of nation ids          (StoreListError)
    read(id)          -> NationRecord | None         (StoreReadError,
                                                      MalformedRecordError)
    write(id, record) -> None                        (StoreWriteError)

A missing record is `None`, not an exception. A single write either
fully succeeds or raises; nothing is assumed across records.
Retry policies belong to the concrete adapter.
"""

from __future__ import annotations

import copy
import threading
from typing import Dict, Iterable, Optional, Protocol, Set

from nation_kernel.domain_types import NationRecord


# ══════════════════════════════════════════════════════════════
# Exception Hierarchy
# ══════════════════════════════════════════════════════════════

class StoreError(Exception):
    """Base exception for all record store operations."""

    def __init__(self, message: str, nation_id: str = "") -> None:
        self.nation_id = nation_id
        self.reason = message
        super().__init__(message)


class StoreListError(StoreError):
    """Enumerating nation ids failed. Fatal for a turn."""


class StoreReadError(StoreError):
    """Reading one nation failed for a reason other than absence."""


class StoreWriteError(StoreError):
    """Persisting one nation failed. The stored record is unchanged."""


# ══════════════════════════════════════════════════════════════
# Contract
# ══════════════════════════════════════════════════════════════

class RecordStore(Protocol):
    def list(self) -> Set[str]:
        ...

    def read(self, nation_id: str) -> Optional[NationRecord]:
        ...

    def write(self, nation_id: str, record: NationRecord) -> None:
        ...


# ══════════════════════════════════════════════════════════════
# In-memory adapter
# ══════════════════════════════════════════════════════════════

class MemoryRecordStore:
    """
    Dict-backed store holding raw JSON-shaped payloads.

    Records are decoded on read and encoded on write, so anything that
    survives this store also survives a real serialising one.
    """

    def __init__(self, records: Iterable[NationRecord] = ()) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, dict] = {}
        for record in records:
            self._data[record.id] = record.to_dict()

    def list(self) -> Set[str]:
        with self._lock:
            return set(self._data)

    def read(self, nation_id: str) -> Optional[NationRecord]:
        with self._lock:
            raw = self._data.get(nation_id)
            raw = copy.deepcopy(raw)
        if raw is None:
            return None
        return NationRecord.from_dict(raw)

    def write(self, nation_id: str, record: NationRecord) -> None:
        payload = record.to_dict()
        with self._lock:
            self._data[nation_id] = payload

    def put_raw(self, nation_id: str, payload: dict) -> None:
        """Store an arbitrary payload, bypassing validation."""
        with self._lock:
            self._data[nation_id] = copy.deepcopy(payload)

    def get_raw(self, nation_id: str) -> Optional[dict]:
        with self._lock:
            return copy.deepcopy(self._data.get(nation_id))
