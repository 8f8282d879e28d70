"""Query builder and executor for quire.

SQL in, row dicts (or dataclasses) out. Not an ORM.

Basic usage::

    from quire.data import Executor

    db = Executor("sqlite:///cms.db")

    story_id = await db.table("stories").insert({"title": "Dune"}).insert_and_get()
    story = await db.table("stories").filter_equals("id", story_id).first()
    drafts = await db.table("stories").filter_equals("published", False).count()

PostgreSQL needs ``asyncpg``::

    pip install quire[pg]
"""

from quire.data.errors import (
    ConflictError,
    ConnectivityError,
    ConstraintError,
    DataError,
    DriverNotInstalledError,
    QueryError,
    StatementError,
)
from quire.data.executor import (
    ConnectionGuard,
    ConnectionPolicy,
    ConnectionState,
    Executor,
    get_executor,
    use_executor,
)
from quire.data.lookups import all_rows, find_by, get_by, table
from quire.data.predicates import Equals, In, Raw
from quire.data.query import Query

__all__ = [
    "ConflictError",
    "ConnectionGuard",
    "ConnectionPolicy",
    "ConnectionState",
    "ConnectivityError",
    "ConstraintError",
    "DataError",
    "DriverNotInstalledError",
    "Equals",
    "Executor",
    "In",
    "Query",
    "QueryError",
    "Raw",
    "StatementError",
    "all_rows",
    "find_by",
    "get_by",
    "get_executor",
    "table",
    "use_executor",
]
