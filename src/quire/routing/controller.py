"""Controller modules.

A controller is a Python module under ``routes/`` whose file name is the
controller name. It either declares an explicit ``routes`` map::

    routes = {
        "GET /": "index",
        "POST /": ["validate_story", "create"],
    }

or exposes plain functions that the composer maps to routes by name.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any

from quire.errors import StartupError
from quire.routing.route import Handler


def exported_functions(module: ModuleType) -> dict[str, Handler]:
    """Functions the module exports, in definition order.

    ``__all__`` wins when declared. Otherwise every public function
    defined in the module itself; imported helpers are not exports.
    """
    declared = getattr(module, "__all__", None)
    if declared is not None:
        found = {name: getattr(module, name, None) for name in declared if name != "routes"}
        return {name: obj for name, obj in found.items() if callable(obj)}
    return {
        name: obj
        for name, obj in vars(module).items()
        if not name.startswith("_")
        and inspect.isfunction(obj)
        and obj.__module__ == module.__name__
    }


@dataclass(frozen=True, slots=True)
class Controller:
    """A named bundle of handlers, with or without an explicit route map.

    ``exports`` drives convention routing. ``namespace`` is every public
    name on the module and is where string chain entries are resolved.
    """

    name: str
    exports: Mapping[str, Handler] = field(default_factory=dict)
    routes: Mapping[str, Any] | None = None
    namespace: Mapping[str, Any] = field(default_factory=dict)
    source: str | None = None

    @classmethod
    def from_module(cls, module: ModuleType, name: str | None = None) -> Controller:
        controller_name = name or module.__name__.rpartition(".")[2]
        routes = getattr(module, "routes", None)
        if routes is not None and not isinstance(routes, Mapping):
            msg = (
                f"Controller {controller_name!r}: 'routes' must be a mapping of "
                f"'METHOD /path' to handlers, got {type(routes).__name__}"
            )
            raise StartupError(msg)
        namespace = {k: v for k, v in vars(module).items() if not k.startswith("_")}
        return cls(
            name=controller_name,
            exports=exported_functions(module),
            routes=routes,
            namespace=namespace,
            source=getattr(module, "__file__", None),
        )

    @classmethod
    def from_functions(
        cls,
        name: str,
        *functions: Handler,
        routes: Mapping[str, Any] | None = None,
    ) -> Controller:
        """Build a controller in code, without a module file."""
        exports = {f.__name__: f for f in functions}
        return cls(name=name, exports=exports, routes=routes, namespace=dict(exports))

    @property
    def explicit(self) -> bool:
        return self.routes is not None

    def lookup(self, name: str) -> Any:
        """Resolve a string chain entry, or ``None`` when nothing has that name."""
        return self.namespace.get(name)
