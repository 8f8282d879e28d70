"""WHERE predicates as plain data.

A closed set of variants, each compiling to a SQL fragment plus the
parameters bound to its placeholders. Values always travel in the
parameter tuple, never inside the fragment text.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from quire.data._sql import count_placeholders


@dataclass(frozen=True, slots=True)
class Equals:
    """``field = ?``"""

    field: str
    value: Any

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        return f"{self.field} = ?", (self.value,)


@dataclass(frozen=True, slots=True)
class In:
    """``field IN (?, ?, ...)``. An empty list matches nothing."""

    field: str
    values: tuple[Any, ...]

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        if not self.values:
            return "1 = 0", ()
        placeholders = ", ".join("?" for _ in self.values)
        return f"{self.field} IN ({placeholders})", self.values


@dataclass(frozen=True, slots=True)
class Raw:
    """A developer-authored boolean fragment, trusted verbatim.

    The fragment must contain exactly one ``?`` per parameter::

        Raw("sc.collection_id = ?", (7,))
        Raw("(title LIKE ? OR summary LIKE ?)", ("%x%", "%x%"))
    """

    fragment: str
    params: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        expected = count_placeholders(self.fragment)
        if expected != len(self.params):
            msg = (
                f"Fragment {self.fragment!r} has {expected} placeholder(s) "
                f"but {len(self.params)} parameter(s) were given"
            )
            raise ValueError(msg)

    def compile(self) -> tuple[str, tuple[Any, ...]]:
        return self.fragment, self.params


type Predicate = Equals | In | Raw


def compile_where(predicates: Sequence[Predicate]) -> tuple[str | None, tuple[Any, ...]]:
    """AND the predicates together. Returns ``(None, ())`` when empty."""
    if not predicates:
        return None, ()
    fragments: list[str] = []
    params: list[Any] = []
    for predicate in predicates:
        fragment, bound = predicate.compile()
        fragments.append(fragment)
        params.extend(bound)
    return " AND ".join(fragments), tuple(params)
