# SPDX-License-Identifier: MIT
"""SQLite flavour of the DB-API adapter."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .dbapi import DBAPIConnection

__all__ = ["SQLiteConnection", "connect_sqlite"]


class SQLiteConnection(DBAPIConnection):
    """Issue explicit ``BEGIN`` and read insert ids from the connection itself."""

    def __init__(self, raw: sqlite3.Connection) -> None:
        super().__init__(raw, error_types=(sqlite3.Error,))

    @property
    def raw(self) -> sqlite3.Connection:
        return self._raw  # type: ignore[return-value]

    def _uses_autocommit(self) -> bool:
        # Transaction control statements work whatever isolation_level is set.
        return True

    def last_insert_id(self) -> int:
        # Connection scoped, unlike cursor.lastrowid.
        row = self.raw.execute("SELECT last_insert_rowid()").fetchone()
        return int(row[0]) if row is not None else 0


def connect_sqlite(path: str | Path = ":memory:", *, timeout: float = 5.0) -> SQLiteConnection:
    """Open *path* in autocommit mode with foreign keys enforced."""

    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    raw = sqlite3.connect(str(path), timeout=timeout, isolation_level=None)
    raw.execute("PRAGMA foreign_keys = ON")
    return SQLiteConnection(raw)
