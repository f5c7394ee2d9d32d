"""Chunk store connection: sqlite3 with sqlite-vec loaded and the schema migrated."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

from docrag.db.schema import initialize

# Applied to every connection, in order.
_PRAGMAS: tuple[str, ...] = (
    "journal_mode = WAL",
    "busy_timeout = 5000",
)


class Database:
    """A docrag chunk store file.

    Args:
        db_path: SQLite file (created on first connect).
        migrate: Run pending schema migrations on every connect. CLI commands
            pass True; tests that exercise the migration runner leave it off.
    """

    def __init__(self, db_path: Path | str, *, migrate: bool = False) -> None:
        self.db_path = Path(db_path)
        self.migrate = migrate
        self._conn: sqlite3.Connection | None = None

    @property
    def exists(self) -> bool:
        return self.db_path.exists()

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.enable_load_extension(True)
        try:
            sqlite_vec.load(conn)
        finally:
            conn.enable_load_extension(False)
        for pragma in _PRAGMAS:
            conn.execute(f"PRAGMA {pragma}")
        if self.migrate:
            initialize(conn)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
