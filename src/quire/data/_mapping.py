"""Row dicts to dataclass instances for ``Query.into()``.

A handler names the shape it wants as a dataclass whose fields are the
result columns::

    @dataclass(frozen=True, slots=True)
    class StoryCard:
        id: int
        title: str
        author: str
        published: bool = False

    cards = await (
        db.table("stories")
        .select(["stories.id", "title", "users.username AS author", "published"])
        .join("users", "stories.user_id = users.id")
        .into(StoryCard)
        .get()
    )

An explicit select list is checked against the required fields before
the statement runs, so a forgotten column is reported by name. SQLite
has no boolean type: ``bool`` fields turn its ``0``/``1`` into
``False``/``True``. Every other value is passed through untouched.
"""

import dataclasses
import re
import types
from collections.abc import Mapping, Sequence
from typing import Any, get_args, get_origin, get_type_hints

from quire.data.errors import DataError

# "users.username AS author" -> author
_ALIAS = re.compile(r"\s+AS\s+(\w+)\s*$", re.IGNORECASE)


@dataclasses.dataclass(frozen=True, slots=True)
class _Shape:
    fields: tuple[str, ...]
    required: frozenset[str]
    flags: frozenset[str]


def _is_bool(annotation: Any) -> bool:
    if get_origin(annotation) is types.UnionType:
        return bool in get_args(annotation)
    return annotation is bool


def _shape(cls: type) -> _Shape:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass; Query.into() needs a dataclass type"
        raise TypeError(msg)
    hints = get_type_hints(cls)
    fields = [f for f in dataclasses.fields(cls) if f.init]
    return _Shape(
        fields=tuple(f.name for f in fields),
        required=frozenset(
            f.name
            for f in fields
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        ),
        flags=frozenset(f.name for f in fields if _is_bool(hints.get(f.name))),
    )


def _missing(cls: type, table: str, missing: set[str] | frozenset[str]) -> DataError:
    msg = (
        f"Rows of {table!r} cannot fill {cls.__name__}: no column for "
        f"{', '.join(sorted(missing))}. "
        "Select or alias the column, or give the field a default."
    )
    return DataError(msg)


def output_columns(columns: Sequence[str]) -> tuple[str, ...] | None:
    """Result column names of a select list, or ``None`` when a ``*`` hides them.

    ::

        output_columns(["stories.id", "users.username AS author"])  # ("id", "author")
    """
    names: list[str] = []
    for expression in columns:
        expression = expression.strip()
        alias = _ALIAS.search(expression)
        if alias is not None:
            names.append(alias.group(1))
        elif expression == "*" or expression.endswith(".*"):
            return None
        else:
            names.append(expression.rpartition(".")[2])
    return tuple(names)


def check_columns(cls: type, columns: Sequence[str], table: str) -> None:
    """Raise ``DataError`` when the select list cannot fill *cls*."""
    names = output_columns(columns)
    if names is None:
        return
    missing = _shape(cls).required.difference(names)
    if missing:
        raise _missing(cls, table, missing)


def map_rows[T](cls: type[T], rows: list[Mapping[str, Any]], *, table: str = "?") -> list[T]:
    """Build one *cls* per row. Columns without a field are ignored.

    Raises ``DataError`` naming the columns a required field has no
    value for.
    """
    if not rows:
        return []
    shape = _shape(cls)
    missing = shape.required.difference(rows[0])
    if missing:
        raise _missing(cls, table, missing)
    present = [name for name in shape.fields if name in rows[0]]
    return [
        cls(
            **{
                name: bool(row[name])
                if name in shape.flags and row[name] is not None
                else row[name]
                for name in present
            }
        )
        for row in rows
    ]
