"""Filesystem discovery for controllers and views.

Walks the routes directory for controller modules (``story.py``,
``api_story.py``) and, for each, the matching ``views/<controller>/``
directory for view templates. Both directories must exist: a missing one
is a ``StartupError``, never a silently empty route table.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

from quire.errors import StartupError
from quire.routing.controller import Controller
from quire.routing.views import list_views

logger = logging.getLogger("quire.routing")

# Namespace for controller modules loaded from files
_MODULE_PREFIX = "quire_routes"


def discover_controllers(routes_dir: str | Path) -> list[Controller]:
    """Load every ``*.py`` controller in *routes_dir*, sorted by file name.

    Files starting with ``_`` are skipped.
    """
    root = Path(routes_dir).resolve()
    if not root.is_dir():
        msg = f"Routes directory not found: {root}"
        raise StartupError(msg)

    controllers: list[Controller] = []
    for item in sorted(root.iterdir()):
        if not item.is_file() or item.suffix != ".py" or item.name.startswith("_"):
            continue
        module = load_module(item)
        controllers.append(Controller.from_module(module, name=item.stem))
        logger.debug("Loaded controller %r from %s", item.stem, item)
    return controllers


def discover_views(
    views_dir: str | Path, controllers: list[Controller], *, extension: str = ".html"
) -> dict[str, tuple[str, ...]]:
    """Map each controller name to the view names in its view directory."""
    root = Path(views_dir).resolve()
    if not root.is_dir():
        msg = f"Views directory not found: {root}"
        raise StartupError(msg)
    return {c.name: list_views(root, c.name, extension) for c in controllers}


def scan(
    routes_dir: str | Path, views_dir: str | Path, *, extension: str = ".html"
) -> tuple[list[Controller], dict[str, tuple[str, ...]]]:
    """Discover controllers, then their views."""
    controllers = discover_controllers(routes_dir)
    return controllers, discover_views(views_dir, controllers, extension=extension)


def load_module(path: Path) -> ModuleType:
    """Import a controller file. Any import-time failure is a ``StartupError``."""
    module_name = f"{_MODULE_PREFIX}.{path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load controller module: {path}"
        raise StartupError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        msg = f"Controller {path.stem!r} failed to import: {exc}"
        raise StartupError(msg) from exc
    return module
