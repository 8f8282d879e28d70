"""One-line lookups for the common cases.

Thin shortcuts over ``Query`` for handlers that only need "the row with
this id" or "every row with this owner"::

    story = await get_by("stories", "vanity", vanity)
    chapters = await find_by("chapters", "story_id", story["id"])

Each call builds a fresh query, so no state carries between lookups.
"""

from typing import Any

from quire.data.executor import Executor
from quire.data.query import Query


def table(name: str, executor: Executor | None = None) -> Query[dict[str, Any]]:
    """Start a query on *name*, bound to *executor* when given."""
    query: Query[dict[str, Any]] = Query(name)
    if executor is not None:
        query = query.bind(executor)
    return query


async def get_by(
    name: str, field: str, value: Any, executor: Executor | None = None
) -> dict[str, Any] | None:
    """First row of *name* where ``field = value``, or ``None``."""
    return await table(name, executor).filter_equals(field, value).first()


async def find_by(
    name: str, field: str, value: Any, executor: Executor | None = None
) -> list[dict[str, Any]]:
    """Every row of *name* where ``field = value``."""
    return await table(name, executor).filter_equals(field, value).get()


async def all_rows(name: str, executor: Executor | None = None) -> list[dict[str, Any]]:
    return await table(name, executor).get()
