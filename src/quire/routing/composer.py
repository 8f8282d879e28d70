"""Route composer: controllers and views in, immutable route table out.

Runs once at startup. For each controller:

1. The mount prefix comes from its name: the root controller (``main``)
   mounts at ``/``, ``api_<name>`` mounts at ``/api/<name>``, anything
   else at ``/<name>``. A configured base path goes in front.
2. With an explicit ``routes`` map, every ``"METHOD /path"`` entry is
   registered in declaration order. String chain entries resolve against
   the controller's own module.
3. Without one, routes are inferred: ``index`` (function, else view) at
   ``/``, every other function at ``/<function>``, and every remaining
   view at ``/<view>`` as a render-only route. A function always wins
   over a view with the same name.

Lifecycle::

    UNCONFIGURED -> DISCOVERING -> RESOLVING -> REGISTERED

There is no way back: adding a controller means restarting the process.
Any failure raises ``StartupError``; the process must not serve a
partial table.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import anyio

from quire.config import AppConfig, normalize_base_path
from quire.errors import ConfigurationError, StartupError
from quire.routing.controller import Controller
from quire.routing.discovery import scan
from quire.routing.route import HTTP_METHODS, Handler
from quire.routing.table import RouteTable, RouteTableBuilder
from quire.routing.views import Renderer, render_handler

logger = logging.getLogger("quire.routing")


class ComposerState(enum.Enum):
    UNCONFIGURED = "unconfigured"
    DISCOVERING = "discovering"
    RESOLVING = "resolving"
    REGISTERED = "registered"


def mount_prefix(
    name: str,
    *,
    root_controller: str = "main",
    api_prefixes: Sequence[str] = ("api_", "api-"),
) -> str:
    """``main`` -> ``""``, ``api_story`` -> ``/api/story``, ``story`` -> ``/story``."""
    if name == root_controller:
        return ""
    for api_prefix in api_prefixes:
        if name.startswith(api_prefix) and len(name) > len(api_prefix):
            return f"/api/{name[len(api_prefix) :]}"
    return f"/{name}"


def is_api_controller(name: str, api_prefixes: Sequence[str] = ("api_", "api-")) -> bool:
    return any(name.startswith(p) and len(name) > len(p) for p in api_prefixes)


def parse_route_key(key: str) -> tuple[str, str]:
    """Split ``"POST /story"`` into ``("POST", "/story")``.

    A bare path means GET.
    """
    parts = key.split()
    if len(parts) == 1 and parts[0].startswith("/"):
        return "GET", parts[0]
    if len(parts) == 2 and parts[1].startswith("/"):
        method = parts[0].upper()
        if method not in HTTP_METHODS:
            msg = f"Unknown HTTP method in route key {key!r}"
            raise StartupError(msg)
        return method, parts[1]
    msg = f"Route key {key!r} must look like 'METHOD /path' or '/path'"
    raise StartupError(msg)


def flatten_chain(controller: Controller, value: Any) -> list[Handler]:
    """Flatten a chain declaration into an ordered list of callables.

    Nested lists and tuples are flattened. Strings are looked up on the
    controller; names that resolve to nothing are dropped with a warning.
    """
    handlers: list[Handler] = []

    def visit(entry: Any) -> None:
        if isinstance(entry, str):
            resolved = controller.lookup(entry)
            if resolved is None or isinstance(resolved, str):
                logger.warning(
                    "Controller %r: dropping unresolved handler %r", controller.name, entry
                )
                return
            visit(resolved)
        elif isinstance(entry, (list, tuple)):
            for item in entry:
                visit(item)
        elif callable(entry):
            handlers.append(entry)
        else:
            msg = f"Controller {controller.name!r}: {entry!r} is not a handler"
            raise StartupError(msg)

    visit(value)
    return handlers


class RouteComposer:
    """Builds the route table once.

    Usage::

        composer = RouteComposer.from_config(config, renderer=KidaRenderer(config.views_dir))
        table = await composer.compose_directories_async(config.routes_dir, config.views_dir)
    """

    __slots__ = ("_api_prefixes", "_base_path", "_renderer", "_root_controller", "_state", "_table")

    def __init__(
        self,
        *,
        renderer: Renderer | None = None,
        base_path: str = "",
        root_controller: str = "main",
        api_prefixes: Sequence[str] = ("api_", "api-"),
    ) -> None:
        self._renderer = renderer
        self._base_path = normalize_base_path(base_path)
        self._root_controller = root_controller
        self._api_prefixes = tuple(api_prefixes)
        self._state = ComposerState.UNCONFIGURED
        self._table: RouteTable | None = None

    @classmethod
    def from_config(cls, config: AppConfig, renderer: Renderer | None = None) -> RouteComposer:
        return cls(
            renderer=renderer,
            base_path=config.base_path,
            root_controller=config.root_controller,
            api_prefixes=config.api_prefixes,
        )

    @property
    def state(self) -> ComposerState:
        return self._state

    @property
    def table(self) -> RouteTable:
        if self._table is None:
            msg = "Routes have not been composed yet."
            raise ConfigurationError(msg)
        return self._table

    def prefix_for(self, name: str) -> str:
        return self._base_path + mount_prefix(
            name, root_controller=self._root_controller, api_prefixes=self._api_prefixes
        )

    # -- Entry points --

    def compose_directories(
        self, routes_dir: str | Path, views_dir: str | Path, *, extension: str = ".html"
    ) -> RouteTable:
        """Scan ``routes_dir`` and ``views_dir``, then compose."""
        self._begin(ComposerState.DISCOVERING)
        controllers, views = scan(routes_dir, views_dir, extension=extension)
        return self._resolve(controllers, views)

    async def compose_directories_async(
        self, routes_dir: str | Path, views_dir: str | Path, *, extension: str = ".html"
    ) -> RouteTable:
        """Like ``compose_directories`` with the filesystem scan off the event loop."""
        self._begin(ComposerState.DISCOVERING)
        controllers, views = await anyio.to_thread.run_sync(
            lambda: scan(routes_dir, views_dir, extension=extension)
        )
        return self._resolve(controllers, views)

    def compose(
        self,
        controllers: Iterable[Controller],
        views: Mapping[str, Sequence[str]] | None = None,
    ) -> RouteTable:
        """Compose already-loaded controllers. *views* maps controller -> view names."""
        self._begin(ComposerState.RESOLVING)
        return self._resolve(list(controllers), views or {})

    # -- Resolution --

    def _begin(self, state: ComposerState) -> None:
        if self._state is not ComposerState.UNCONFIGURED:
            msg = f"Route composer already ran (state: {self._state.value}); restart to recompose."
            raise ConfigurationError(msg)
        self._state = state

    def _resolve(
        self, controllers: Sequence[Controller], views: Mapping[str, Sequence[str]]
    ) -> RouteTable:
        self._state = ComposerState.RESOLVING
        builder = RouteTableBuilder()
        for controller in controllers:
            try:
                if controller.explicit:
                    self._register_explicit(builder, controller)
                else:
                    self._register_conventions(builder, controller, views.get(controller.name, ()))
            except StartupError:
                raise
            except (ConfigurationError, TypeError, ValueError) as exc:
                msg = f"Controller {controller.name!r}: {exc}"
                raise StartupError(msg) from exc

        self._table = builder.freeze()
        self._state = ComposerState.REGISTERED
        logger.info(
            "Registered %d route(s) from %d controller(s)", len(self._table), len(controllers)
        )
        return self._table

    def _register_explicit(self, builder: RouteTableBuilder, controller: Controller) -> None:
        prefix = self.prefix_for(controller.name)
        for key, value in (controller.routes or {}).items():
            method, path = parse_route_key(key)
            handlers = flatten_chain(controller, value)
            if not handlers:
                msg = f"Controller {controller.name!r}: route {key!r} resolved to no handlers"
                raise StartupError(msg)
            name = f"{controller.name}.{getattr(handlers[-1], '__name__', key)}"
            self._add(builder, controller, method, path, handlers, prefix=prefix, name=name)

    def _register_conventions(
        self,
        builder: RouteTableBuilder,
        controller: Controller,
        views: Sequence[str],
    ) -> None:
        prefix = self.prefix_for(controller.name)
        exports = controller.exports

        index = exports.get("index")
        if index is not None:
            self._add(
                builder, controller, "GET", "/", [index], prefix=prefix, name=f"{controller.name}.index"
            )
        elif "index" in views:
            self._add_view(builder, controller, "index", prefix, "/")

        for name, func in exports.items():
            if name == "index":
                continue
            self._add(
                builder,
                controller,
                "GET",
                f"/{name}",
                [func],
                prefix=prefix,
                name=f"{controller.name}.{name}",
            )

        if is_api_controller(controller.name, self._api_prefixes):
            return

        for view in views:
            if view == "index" or view in exports:
                continue
            self._add_view(builder, controller, view, prefix, f"/{view}")

    def _add_view(
        self,
        builder: RouteTableBuilder,
        controller: Controller,
        view: str,
        prefix: str,
        path: str,
    ) -> None:
        if self._renderer is None:
            msg = (
                f"Controller {controller.name!r}: view {view!r} needs a route "
                "but no renderer is configured"
            )
            raise StartupError(msg)
        handler = render_handler(self._renderer, f"{controller.name}/{view}")
        self._add(
            builder, controller, "GET", path, [handler], prefix=prefix, name=f"{controller.name}.{view}"
        )

    def _add(
        self,
        builder: RouteTableBuilder,
        controller: Controller,
        method: str,
        path: str,
        handlers: Sequence[Handler],
        *,
        prefix: str,
        name: str,
    ) -> None:
        # First registration wins; later duplicates are reported and skipped.
        if builder.has(method, f"{prefix}{path}"):
            logger.warning(
                "Controller %r: %s %s%s is already registered; skipping",
                controller.name,
                method,
                prefix,
                path,
            )
            return
        builder.add(
            method, path, *handlers, prefix=prefix, controller=controller.name, name=name
        )
