"""RouteDefinition and RouteMatch frozen dataclasses, plus path syntax.

Path segments are static (``story``) or parameters (``{id}``,
``{id:int}``, ``{rest:path}``). Other parameter spellings are rejected
when the route is registered.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from quire.errors import ConfigurationError

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

type Handler = Callable[..., Any]

# (regex, converter) per parameter type
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}


@dataclass(frozen=True, slots=True)
class PathParam:
    name: str
    kind: str


def parse_segment(segment: str, path: str) -> str | PathParam:
    """A static segment as-is, or the ``PathParam`` for ``{name:kind}``."""
    if segment.startswith(("<", ":")):
        msg = f"Route {path!r}: write path parameters as {{param}}, not {segment!r}"
        raise ConfigurationError(msg)
    if not (segment.startswith("{") and segment.endswith("}")):
        return segment
    name, _, kind = segment[1:-1].partition(":")
    kind = kind or "str"
    if kind not in CONVERTERS:
        msg = f"Route {path!r}: unknown parameter type {kind!r}"
        raise ConfigurationError(msg)
    return PathParam(name, kind)


def parse_path(path: str) -> list[str | PathParam]:
    """Parse every segment of *path*. Raises ``ConfigurationError`` on bad syntax."""
    return [parse_segment(p, path) for p in path.split("/") if p]


def join_path(prefix: str, path: str) -> str:
    """Join a mount prefix and a sub-path into one normalized path.

    ::

        join_path("", "/")            -> "/"
        join_path("/story", "/")      -> "/story"
        join_path("/api/story", "/{id}") -> "/api/story/{id}"
    """
    parts = [p for p in f"{prefix}/{path}".split("/") if p]
    return "/" + "/".join(parts)


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """One registered route. Immutable once registered.

    ``path`` already includes ``prefix``. ``handlers`` run in order; each
    may answer or pass control to the next.
    """

    method: str
    path: str
    handlers: tuple[Handler, ...]
    prefix: str = ""
    controller: str | None = None
    name: str | None = None

    @property
    def handler(self) -> Handler:
        """The last handler in the chain (the one that does the work)."""
        return self.handlers[-1]


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: RouteDefinition
    path_params: dict[str, Any]
