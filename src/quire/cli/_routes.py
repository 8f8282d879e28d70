"""``quire routes``: compose and print the route table.

Runs the same composition the server runs at boot, so a controller that
fails to load fails here too.
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from quire.config import AppConfig, normalize_base_path
from quire.errors import StartupError
from quire.routing.composer import RouteComposer
from quire.templating import KidaRenderer

logger = logging.getLogger("quire.cli")


def _handler_label(handlers: tuple) -> str:
    names = [getattr(h, "__name__", repr(h)) for h in handlers]
    template = getattr(handlers[-1], "template", None)
    if template is not None:
        names[-1] = f"render {template}"
    return " -> ".join(names)


def run_routes(args: argparse.Namespace, config: AppConfig) -> None:
    """Print METHOD, PATH and the handler chain for every route."""
    overrides = {
        key: value
        for key, value in (
            ("routes_dir", args.routes_dir),
            ("views_dir", args.views_dir),
            ("base_path", normalize_base_path(args.base_path) if args.base_path else None),
        )
        if value is not None
    }
    config = dataclasses.replace(config, **overrides)

    logger.debug("Composing routes from %s and %s", config.routes_dir, config.views_dir)
    # A missing views directory is reported by the composer itself
    renderer = KidaRenderer(config.views_dir) if Path(config.views_dir).is_dir() else None
    composer = RouteComposer.from_config(config, renderer=renderer)
    try:
        table = composer.compose_directories(
            config.routes_dir, config.views_dir, extension=config.view_extension
        )
    except StartupError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not len(table):
        print("No routes registered.")
        return

    rows = [(r.method, r.path, _handler_label(r.handlers)) for r in table]
    max_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "HANDLER"))
    sep_len = max_method + max_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, label in rows:
        print(fmt.format(method, path, label))
