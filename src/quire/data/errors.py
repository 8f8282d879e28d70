"""Data layer error hierarchy.

Every statement failure surfaces as a ``QueryError`` subclass that
carries the driver's error ``code``, a ``message``, and the compiled
``sql`` and ``params`` that produced it::

    try:
        await db.table("users").insert({"email": email}).insert_and_get()
    except ConflictError as exc:
        log.info("duplicate: %s (%s)", exc.message, exc.code)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from quire.errors import QuireError


class DataError(QuireError):
    """Base for all quire.data errors."""


class DriverNotInstalledError(DataError):
    """Raised when the required database driver is not installed."""


class QueryError(DataError):
    """A statement failed. Carries diagnostics for the failed statement."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        sql: str | None = None,
        params: Sequence[Any] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.sql = sql
        self.params = tuple(params)

    def with_statement(self, sql: str, params: Sequence[Any]) -> QueryError:
        """Attach the statement that failed. Returns ``self``."""
        self.sql = sql
        self.params = tuple(params)
        return self

    def __str__(self) -> str:
        text = self.message
        if self.code:
            text = f"[{self.code}] {text}"
        if self.sql:
            text = f"{text} | sql={self.sql!r} params={self.params!r}"
        return text


class ConnectivityError(QueryError):
    """The database connection was lost or could not be (re)established."""


class StatementError(QueryError):
    """Malformed SQL, type mismatch, unknown column. Never retried."""


class ConstraintError(QueryError):
    """A constraint (NOT NULL, FOREIGN KEY, CHECK, UNIQUE) was violated."""


class ConflictError(ConstraintError):
    """A unique constraint was violated (duplicate key)."""
