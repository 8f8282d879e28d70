"""Route tables.

``RouteTableBuilder`` collects routes by ordinary function calls;
``freeze()`` turns it into an immutable ``RouteTable``. The route composer
fills a builder from controller modules, but a table can be declared
directly too::

    builder = RouteTableBuilder()
    builder.get("/", home)
    builder.post("/story/create", validate_story, create_story)
    table = builder.freeze()
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from quire.errors import ConfigurationError
from quire.routing.route import HTTP_METHODS, Handler, RouteDefinition, join_path, parse_path


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Immutable, ordered list of routes. Read-only for the process lifetime."""

    routes: tuple[RouteDefinition, ...] = ()

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    def find(self, method: str, path: str) -> RouteDefinition | None:
        """The route registered for exactly (*method*, *path*), if any."""
        key = (method.upper(), join_path("", path))
        for route in self.routes:
            if (route.method, route.path) == key:
                return route
        return None

    def as_tuples(self) -> list[tuple[str, str, tuple[Handler, ...]]]:
        """``(method, path, handlers)`` triples, the dispatcher-facing shape."""
        return [(r.method, r.path, r.handlers) for r in self.routes]


class RouteTableBuilder:
    """Mutable during setup; ``freeze()`` ends registration."""

    __slots__ = ("_frozen", "_keys", "_routes")

    def __init__(self) -> None:
        self._routes: list[RouteDefinition] = []
        self._keys: set[tuple[str, str]] = set()
        self._frozen = False

    def has(self, method: str, path: str) -> bool:
        return (method.upper(), join_path("", path)) in self._keys

    def add(
        self,
        method: str,
        path: str,
        *handlers: Handler,
        prefix: str = "",
        controller: str | None = None,
        name: str | None = None,
    ) -> RouteDefinition:
        """Register ``method prefix+path -> handlers``.

        Raises ``ConfigurationError`` for an unknown method, an empty or
        non-callable chain, a malformed path parameter, a duplicate
        (method, path), or after freeze.
        """
        if self._frozen:
            msg = "Cannot add routes after the route table is frozen."
            raise ConfigurationError(msg)
        verb = method.upper()
        if verb not in HTTP_METHODS:
            msg = f"Unknown HTTP method {method!r} for route {path!r}"
            raise ConfigurationError(msg)
        if not handlers:
            msg = f"Route {verb} {path!r} has an empty handler chain"
            raise ConfigurationError(msg)
        for handler in handlers:
            if not callable(handler):
                msg = f"Route {verb} {path!r}: handler {handler!r} is not callable"
                raise ConfigurationError(msg)

        full_path = join_path(prefix, path)
        parse_path(full_path)
        key = (verb, full_path)
        if key in self._keys:
            msg = f"Duplicate route: {verb} {full_path}"
            raise ConfigurationError(msg)

        route = RouteDefinition(
            method=verb,
            path=full_path,
            handlers=tuple(handlers),
            prefix=prefix,
            controller=controller,
            name=name or getattr(handlers[-1], "__name__", None),
        )
        self._keys.add(key)
        self._routes.append(route)
        return route

    def get(self, path: str, *handlers: Handler, **kwargs: str) -> RouteDefinition:
        return self.add("GET", path, *handlers, **kwargs)

    def post(self, path: str, *handlers: Handler, **kwargs: str) -> RouteDefinition:
        return self.add("POST", path, *handlers, **kwargs)

    def put(self, path: str, *handlers: Handler, **kwargs: str) -> RouteDefinition:
        return self.add("PUT", path, *handlers, **kwargs)

    def patch(self, path: str, *handlers: Handler, **kwargs: str) -> RouteDefinition:
        return self.add("PATCH", path, *handlers, **kwargs)

    def delete(self, path: str, *handlers: Handler, **kwargs: str) -> RouteDefinition:
        return self.add("DELETE", path, *handlers, **kwargs)

    def freeze(self) -> RouteTable:
        self._frozen = True
        return RouteTable(tuple(self._routes))
