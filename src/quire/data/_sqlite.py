"""Async SQLite session over stdlib sqlite3 + anyio.

Blocking sqlite3 calls run in anyio worker threads. The session is
opened with ``autocommit=True``: every statement commits on its own,
which is the only write model quire offers (no multi-statement
transactions).

``check_same_thread=False`` is required because ``anyio.to_thread``
dispatches to a pool and consecutive calls may land on different threads.
The executor serializes statements on the session, so two threads never
touch the connection at the same time.
"""

import sqlite3
from collections.abc import Callable, Sequence
from typing import Any

import anyio


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    return anyio.to_thread.run_sync(func, *args)  # type: ignore[union-attr]


class SQLiteResult:
    """Rows, column names and generated key from one statement."""

    __slots__ = ("columns", "lastrowid", "rows")

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self.columns = [desc[0] for desc in cursor.description or ()]
        self.rows = cursor.fetchall() if cursor.description else []
        self.lastrowid = cursor.lastrowid

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row, strict=True)) for row in self.rows]


class SQLiteSession:
    """One logical SQLite session."""

    __slots__ = ("_closed", "_conn", "path")

    def __init__(self, conn: sqlite3.Connection, path: str) -> None:
        self._conn = conn
        self._closed = False
        self.path = path

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self, sql: str, params: Sequence[Any] = ()) -> SQLiteResult:
        # Fetch inside the worker thread so the cursor never crosses threads
        def _run() -> SQLiteResult:
            return SQLiteResult(self._conn.execute(sql, params))

        return await _run_sync(_run)

    async def run_script(self, sql: str) -> None:
        await _run_sync(lambda: self._conn.executescript(sql))

    async def ping(self) -> bool:
        """True when the session can still run a trivial statement."""
        try:
            await _run_sync(lambda: self._conn.execute("SELECT 1").fetchone())
        except sqlite3.ProgrammingError:
            return False
        return True

    async def close(self) -> None:
        self._closed = True
        await _run_sync(self._conn.close)


async def open_session(path: str) -> SQLiteSession:
    """Open a session with foreign keys on and WAL journaling for files."""

    def _open() -> sqlite3.Connection:
        conn = sqlite3.connect(path, autocommit=True, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys=ON")
        if path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    return SQLiteSession(await _run_sync(_open), path)
