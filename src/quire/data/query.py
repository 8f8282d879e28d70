"""Immutable query builder for quire.data.

Accumulates one statement's shape through chaining methods, compiles it
to SQL text + a parameter tuple, and runs it through an ``Executor``.

Each method returns a new frozen ``Query``; the original is never
mutated, so a partially built query is safe to reuse as a base::

    published = db.table("stories").filter_equals("published", True)

    latest = await (
        published
        .select(["stories.id", "title", "users.username AS author"])
        .join("users", "stories.user_id = users.id")
        .order_by("stories.created_at", "DESC")
        .limit(20)
        .get()
    )
    total = await published.count()

Clause order is fixed no matter the call order::

    SELECT .. FROM .. [JOIN ..]* [WHERE a AND b ..] [GROUP BY ..]
    [ORDER BY ..] [LIMIT ..] [OFFSET ..]

``.sql`` and ``.params`` show exactly what will run.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from quire.data._mapping import check_columns, map_rows
from quire.data.errors import DataError
from quire.data.executor import Executor, get_executor
from quire.data.predicates import Equals, In, Predicate, Raw, compile_where

_DIRECTIONS = frozenset({"ASC", "DESC"})


def _column_list(fields: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(fields, str):
        return (fields,)
    return tuple(fields)


def _check_count(name: str, n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        msg = f"{name}() takes a non-negative integer, got {n!r}"
        raise ValueError(msg)
    return n


@dataclass(frozen=True, slots=True)
class Query[T]:
    """Immutable description of one SELECT or INSERT statement.

    Construct with a table name (optionally ``"table AS alias"``), chain
    methods to add clauses, then finish with ``get()``, ``first()``,
    ``count()`` or ``insert_and_get()``.
    """

    _table: str
    _columns: tuple[str, ...] = ("*",)
    _predicates: tuple[Predicate, ...] = ()
    _joins: tuple[str, ...] = ()
    _group_by: tuple[str, ...] = ()
    _order: tuple[str, str] | None = None
    _limit: int | None = None
    _offset: int | None = None
    _payload: tuple[tuple[str, Any], ...] | None = None
    _cls: type[T] | None = None
    _executor: Executor | None = None

    # ── Building ─────────────────────────────────────────────────────────

    def select(self, fields: str | Sequence[str]) -> Query[T]:
        """Set the column list. Default is ``*``.

        ::

            q.select(["id", "title"])      # SELECT id, title
            q.select("COUNT(*) AS n")      # SELECT COUNT(*) AS n
        """
        return replace(self, _columns=_column_list(fields))

    def insert(self, data: Mapping[str, Any]) -> Query[T]:
        """Stage a column -> value payload for ``insert_and_get()``."""
        return replace(self, _payload=tuple(data.items()))

    def filter_equals(self, field: str, value: Any) -> Query[T]:
        """Add ``field = ?`` with *value* bound. Multiple filters are ANDed."""
        return self._filter(Equals(field, value))

    def filter_raw(self, fragment: str, /, *params: Any) -> Query[T]:
        """Add a trusted, developer-written fragment with its parameters.

        Caller-supplied values go in *params*, never into *fragment*::

            q.filter_raw("(title LIKE ? OR summary LIKE ?)", term, term)

        Raises ``ValueError`` when the placeholder count and the number
        of parameters differ.
        """
        return self._filter(Raw(fragment, params))

    def filter_in(self, field: str, values: Iterable[Any]) -> Query[T]:
        """Add ``field IN (?, ...)``. An empty *values* matches no rows.

        A bare string is rejected rather than split into characters.
        """
        if isinstance(values, (str, bytes)):
            msg = (
                f"filter_in() takes a collection of values for {field!r}, "
                f"not {type(values).__name__}"
            )
            raise TypeError(msg)
        return self._filter(In(field, tuple(values)))

    def filter_if(self, condition: object, fragment: str, /, *params: Any) -> Query[T]:
        """Add a raw filter only when *condition* is truthy::

            q.filter_if(search, "title LIKE ?", f"%{search}%")
        """
        if not condition:
            return self
        return self.filter_raw(fragment, *params)

    def _filter(self, predicate: Predicate) -> Query[T]:
        return replace(self, _predicates=(*self._predicates, predicate))

    def order_by(self, field: str, direction: str = "ASC") -> Query[T]:
        """Set the sort key. Replaces any previous ordering."""
        normalized = direction.upper()
        if normalized not in _DIRECTIONS:
            msg = f"order_by() direction must be ASC or DESC, got {direction!r}"
            raise ValueError(msg)
        return replace(self, _order=(field, normalized))

    def limit(self, n: int) -> Query[T]:
        return replace(self, _limit=_check_count("limit", n))

    def offset(self, n: int) -> Query[T]:
        return replace(self, _offset=_check_count("offset", n))

    def join(self, table: str, on: str) -> Query[T]:
        """Append ``JOIN table ON on``. Joins keep their call order."""
        return replace(self, _joins=(*self._joins, f"JOIN {table} ON {on}"))

    def left_join(self, table: str, on: str) -> Query[T]:
        """Append ``LEFT JOIN table ON on``."""
        return replace(self, _joins=(*self._joins, f"LEFT JOIN {table} ON {on}"))

    def group_by(self, fields: str | Sequence[str]) -> Query[T]:
        return replace(self, _group_by=_column_list(fields))

    def bind(self, executor: Executor) -> Query[T]:
        """Attach the executor that terminal calls run on."""
        return replace(self, _executor=executor)

    def into[U](self, cls: type[U]) -> Query[U]:
        """Return rows as *cls* dataclass instances instead of dicts."""
        return replace(self, _cls=cls)  # type: ignore[return-value]

    # ── Compilation ──────────────────────────────────────────────────────

    def _where(self) -> tuple[str | None, tuple[Any, ...]]:
        return compile_where(self._predicates)

    @property
    def sql(self) -> str:
        """The exact SELECT that ``get()`` runs."""
        where, _ = self._where()
        parts = [f"SELECT {', '.join(self._columns)} FROM {self._table}", *self._joins]
        if where:
            parts.append(f"WHERE {where}")
        if self._group_by:
            parts.append(f"GROUP BY {', '.join(self._group_by)}")
        if self._order is not None:
            parts.append(f"ORDER BY {self._order[0]} {self._order[1]}")
        if self._limit is not None:
            parts.append(f"LIMIT {self._limit}")
        if self._offset is not None:
            parts.append(f"OFFSET {self._offset}")
        return " ".join(parts)

    @property
    def params(self) -> tuple[Any, ...]:
        """The bound WHERE parameters, in placeholder order."""
        return self._where()[1]

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        return self.sql, self.params

    @property
    def count_sql(self) -> str:
        """The exact COUNT that ``count()`` runs."""
        return self.compile_count()[0]

    @property
    def insert_sql(self) -> str:
        """The exact INSERT that ``insert_and_get()`` runs."""
        return self.compile_insert()[0]

    def compile_count(self) -> tuple[str, tuple[Any, ...]]:
        """COUNT(*) over the same joins and filters.

        Select list, grouping, ordering, limit and offset are dropped.
        """
        where, params = self._where()
        parts = [f"SELECT COUNT(*) AS count FROM {self._table}", *self._joins]
        if where:
            parts.append(f"WHERE {where}")
        return " ".join(parts), params

    def compile_insert(self) -> tuple[str, tuple[Any, ...]]:
        """INSERT for the staged payload.

        Raises ``DataError`` when nothing is staged, or when the query
        also carries any SELECT clause.
        """
        if not self._payload:
            msg = f"No data staged for insert into {self._table!r}; call insert() first"
            raise DataError(msg)
        clauses = self._select_clauses()
        if clauses:
            msg = f"Insert into {self._table!r} cannot carry {', '.join(clauses)}"
            raise DataError(msg)
        columns = ", ".join(column for column, _ in self._payload)
        placeholders = ", ".join("?" for _ in self._payload)
        values = tuple(value for _, value in self._payload)
        return f"INSERT INTO {self._table} ({columns}) VALUES ({placeholders})", values

    def _select_clauses(self) -> list[str]:
        staged = (
            ("filters", bool(self._predicates)),
            ("joins", bool(self._joins)),
            ("select", self._columns != ("*",)),
            ("group_by", bool(self._group_by)),
            ("order_by", self._order is not None),
            ("limit", self._limit is not None),
            ("offset", self._offset is not None),
        )
        return [name for name, present in staged if present]

    # ── Execution ────────────────────────────────────────────────────────

    def _resolve(self, executor: Executor | None) -> Executor:
        if executor is not None:
            return executor
        if self._executor is not None:
            return self._executor
        try:
            return get_executor()
        except LookupError:
            msg = (
                f"No executor for query on {self._table!r}: pass one, "
                "bind() one, or install one with use_executor()"
            )
            raise DataError(msg) from None

    def _ensure_select_mode(self) -> None:
        if self._payload is not None:
            msg = f"Query on {self._table!r} has an insert payload staged; use insert_and_get()"
            raise DataError(msg)

    async def get(self, executor: Executor | None = None) -> list[T]:
        """Run the SELECT and return every row (possibly empty)."""
        self._ensure_select_mode()
        if self._cls is not None:
            check_columns(self._cls, self._columns, self._table)
        rows = await self._resolve(executor).execute(self.sql, self.params)
        if self._cls is not None:
            return map_rows(self._cls, rows, table=self._table)
        return rows  # type: ignore[return-value]

    async def first(self, executor: Executor | None = None) -> T | None:
        """Run with ``LIMIT 1`` and return the row, or ``None``."""
        rows = await self.limit(1).get(executor)
        return rows[0] if rows else None

    async def count(self, executor: Executor | None = None) -> int:
        """Number of matching rows; 0 when nothing matches."""
        sql, params = self.compile_count()
        rows = await self._resolve(executor).execute(sql, params)
        if not rows:
            return 0
        return int(rows[0]["count"] or 0)

    async def insert_and_get(self, executor: Executor | None = None) -> Any:
        """Run the staged INSERT and return the generated primary key."""
        sql, params = self.compile_insert()
        return await self._resolve(executor).execute_insert(sql, params)
