"""SQLite storage adapter.

Implements the core HistoryStoragePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from core.models import CommandUse, ScreenMark

LOGGER = logging.getLogger(__name__)


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the HistoryStoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - command_uses: append-only log of serialized command uses
        - marks: buffer marks, owned by the terminal buffer layer
        """

        with self._connect() as conn:
            # payload holds the JSON form of CommandUse.serialized_value(),
            # a positional list. New fields are only ever appended to it, so
            # rows written by older versions stay readable.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS command_uses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    command TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
                """
            )
            # Fields:
            # - guid: stable mark identifier referenced by command uses
            # - line: absolute buffer line the mark points at
            # - command: command whose output starts at the mark, if known
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS marks (
                    guid TEXT PRIMARY KEY,
                    line INTEGER NOT NULL,
                    command TEXT
                )
                """
            )

    def save_command_use(self, command: str, use: CommandUse) -> None:
        """Append a command use in its serialized form."""

        with self._connect() as conn:
            conn.execute(
                "INSERT INTO command_uses (command, payload) VALUES (?, ?)",
                (command, json.dumps(use.serialized_value())),
            )

    def load_command_uses(self) -> list[tuple[str, Any]]:
        """Return (command, serialized_value) pairs in insertion order.

        Rows whose payload is not valid JSON are skipped.
        """

        with self._connect() as conn:
            rows = conn.execute("SELECT id, command, payload FROM command_uses ORDER BY id").fetchall()

        loaded: list[tuple[str, Any]] = []
        for row in rows:
            try:
                value = json.loads(row["payload"])
            except json.JSONDecodeError:
                LOGGER.warning("Skipping command use row %s with unreadable payload", row["id"])
                continue
            loaded.append((row["command"], value))
        return loaded

    def save_mark(self, mark: ScreenMark) -> None:
        """Upsert a mark by guid."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO marks (guid, line, command)
                VALUES (?, ?, ?)
                ON CONFLICT(guid) DO UPDATE SET line = excluded.line, command = excluded.command
                """,
                (mark.guid, mark.line, mark.command),
            )

    def load_marks(self) -> list[ScreenMark]:
        """Return all stored marks ordered by line."""

        with self._connect() as conn:
            rows = conn.execute("SELECT guid, line, command FROM marks ORDER BY line").fetchall()
        return [ScreenMark(guid=row["guid"], line=int(row["line"]), command=row["command"]) for row in rows]

    def delete_marks_before(self, line: int) -> int:
        """Delete marks above a line (scrollback trimming) and return the number removed."""

        with self._connect() as conn:
            cur = conn.execute("DELETE FROM marks WHERE line < ?", (line,))
            return cur.rowcount
