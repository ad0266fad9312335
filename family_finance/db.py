from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from .config import DB_PATH, ensure_data_directories

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS slots (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT
);
"""


class KeyValueStore:
    """String slots in a single SQLite table.

    ``update`` runs read, transform and write inside one immediate
    transaction: the slot is either fully replaced or left as it was.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else DB_PATH
        self._initialised = False

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        if self.path == DB_PATH:
            ensure_data_directories()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path), isolation_level=None)
        try:
            if not self._initialised:
                conn.executescript(SCHEMA_SQL)
                self._initialised = True
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            row = conn.execute("SELECT value FROM slots WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO slots (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, value, datetime.utcnow().isoformat()),
            )

    def delete(self, key: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM slots WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def update(self, key: str, transform: Callable[[Optional[str]], Optional[str]]) -> Optional[str]:
        """Apply ``transform`` to the current value of ``key`` atomically.

        ``transform`` receives the stored string (or ``None``) and returns the
        new string; returning ``None`` deletes the slot.  Any exception raised
        by ``transform`` rolls the transaction back and propagates.
        """
        with self.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("SELECT value FROM slots WHERE key = ?", (key,)).fetchone()
                new_value = transform(row[0] if row else None)
                if new_value is None:
                    conn.execute("DELETE FROM slots WHERE key = ?", (key,))
                else:
                    conn.execute(
                        "INSERT INTO slots (key, value, updated_at) VALUES (?, ?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                        (key, new_value, datetime.utcnow().isoformat()),
                    )
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        return new_value
