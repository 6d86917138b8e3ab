# file: nation_runtime/sqlite_repository.py
"""
Nation Repository — sqlite3-backed record store.

One row per nation holding the full JSON payload. A write replaces the
row inside a transaction, so a record is either the old one or the new
one, never a mix.

Thread-safety: one connection shared by the turn's worker threads,
serialised by a lock.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Set

from nation_kernel.codec import decode_record, encode_record
from nation_kernel.domain_types import NationRecord

from .record_store import StoreListError, StoreReadError, StoreWriteError

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class SqliteNationRepository:
    """Nation store backed by a single sqlite3 database file."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        if self._db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        schema_sql = _SCHEMA_PATH.read_text(encoding="utf-8")
        self._conn.executescript(schema_sql)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self) -> Set[str]:
        try:
            with self._lock:
                rows = self._conn.execute("SELECT id FROM nations").fetchall()
        except sqlite3.Error as exc:
            raise StoreListError(f"Failed to list nations: {exc}") from exc
        return {row[0] for row in rows}

    def read(self, nation_id: str) -> Optional[NationRecord]:
        """Return the stored record, or None if no row exists."""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT record_json FROM nations WHERE id = ?",
                    (nation_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreReadError(
                f"Failed to read {nation_id!r}: {exc}", nation_id,
            ) from exc
        if row is None:
            return None
        return decode_record(row[0])

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(self, nation_id: str, record: NationRecord) -> None:
        """
        Replace the stored record.

        Uses INSERT OR REPLACE so founding and turn updates share one path.
        """
        now = datetime.now(timezone.utc).isoformat()
        payload = encode_record(record)
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT OR REPLACE INTO nations (id, record_json, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    (nation_id, payload, now),
                )
        except sqlite3.Error as exc:
            raise StoreWriteError(
                f"Failed to write {nation_id!r}: {exc}", nation_id,
            ) from exc

    def close(self) -> None:
        self._conn.close()
