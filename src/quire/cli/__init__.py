"""Quire CLI.

Entry point registered as ``quire`` in ``pyproject.toml``::

    [project.scripts]
    quire = "quire.cli:main"
"""

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``quire`` command."""
    parser = argparse.ArgumentParser(
        prog="quire",
        description="Quire: query builder and convention-driven routing for a CMS backend.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: QUIRE_LOG_LEVEL or info)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- quire routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the composed route table")
    routes_parser.add_argument("--routes-dir", default=None, help="Controller modules directory")
    routes_parser.add_argument("--views-dir", default=None, help="View templates directory")
    routes_parser.add_argument("--base-path", default=None, help="Mandatory URL prefix")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from quire.config import AppConfig

    config = AppConfig.from_env()
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "routes":
        from quire.cli._routes import run_routes

        run_routes(args, config)
