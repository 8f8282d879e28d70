"""Trie-based dispatcher over a frozen route table.

The HTTP server is an external collaborator; this is the reference
consumer of a ``RouteTable``. It matches a method and path and runs the
route's handler chain::

    router = Router.from_table(table)
    answer = await router.dispatch(Request("GET", "/story/42"))

Path segments are static (``story``) or parameters (``{id}``,
``{id:int}``, ``{rest:path}``). Static segments win over parameters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from quire.errors import MethodNotAllowed, NotFound
from quire.http import Request
from quire.routing.chain import run_chain
from quire.routing.route import CONVERTERS, PathParam, RouteDefinition, RouteMatch, parse_path
from quire.routing.table import RouteTable


@dataclass(slots=True)
class _Node:
    static: dict[str, _Node] = field(default_factory=dict)
    params: dict[str, tuple[re.Pattern[str], _Node]] = field(default_factory=dict)
    catch_all: tuple[PathParam, dict[str, RouteDefinition]] | None = None
    methods: dict[str, RouteDefinition] = field(default_factory=dict)


class Router:
    """Matches requests against the routes of one ``RouteTable``."""

    __slots__ = ("_root", "_table")

    def __init__(self) -> None:
        self._root = _Node()
        self._table = RouteTable()

    @classmethod
    def from_table(cls, table: RouteTable) -> Router:
        router = cls()
        for route in table:
            router._insert(route)
        router._table = table
        return router

    @property
    def table(self) -> RouteTable:
        return self._table

    def _insert(self, route: RouteDefinition) -> None:
        node = self._root
        for segment in parse_path(route.path):
            if isinstance(segment, PathParam) and segment.kind == "path":
                if node.catch_all is None:
                    node.catch_all = (segment, {})
                node.catch_all[1].setdefault(route.method, route)
                return
            if isinstance(segment, PathParam):
                if segment.kind not in node.params:
                    pattern = re.compile(f"^{CONVERTERS[segment.kind][0]}$")
                    node.params[segment.kind] = (pattern, _Node())
                node = node.params[segment.kind][1]
            else:
                node = node.static.setdefault(segment, _Node())
        # First registration wins, matching the table's order
        node.methods.setdefault(route.method, route)

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolve *method* and *path*.

        Raises ``NotFound`` when no path matches and ``MethodNotAllowed``
        when the path matches under other methods only.
        """
        parts = [p for p in path.split("/") if p]
        methods = self._walk(self._root, parts, 0)
        if methods is None:
            raise NotFound(f"No route matches {method} {path!r}")
        route = methods.get(method.upper())
        if route is None:
            raise MethodNotAllowed(frozenset(methods))
        return RouteMatch(route=route, path_params=_bind(route, parts))

    def _walk(
        self, node: _Node, parts: list[str], index: int
    ) -> dict[str, RouteDefinition] | None:
        if index == len(parts):
            return node.methods or None

        part = parts[index]
        child = node.static.get(part)
        if child is not None:
            found = self._walk(child, parts, index + 1)
            if found is not None:
                return found

        for pattern, child in node.params.values():
            if pattern.match(part):
                found = self._walk(child, parts, index + 1)
                if found is not None:
                    return found

        if node.catch_all is not None:
            return node.catch_all[1]

        return None

    async def dispatch(self, request: Request) -> Any:
        """Match *request* and run the route's handler chain."""
        matched = self.match(request.method, request.path)
        return await run_chain(matched.route.handlers, request.with_path_params(matched.path_params))


def _bind(route: RouteDefinition, parts: list[str]) -> dict[str, Any]:
    """Read parameter values from *parts* using the route's own segment names."""
    params: dict[str, Any] = {}
    for index, segment in enumerate(parse_path(route.path)):
        if not isinstance(segment, PathParam):
            continue
        if segment.kind == "path":
            params[segment.name] = "/".join(parts[index:])
            break
        params[segment.name] = CONVERTERS[segment.kind][1](parts[index])
    return params
