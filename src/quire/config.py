"""Application configuration.

AppConfig is a frozen dataclass, immutable after creation, with no string-key
dict lookups. ``from_env()`` reads the ``QUIRE_*`` environment variables
for deployments that configure through the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

_TRUE = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have defaults. Override what you need::

        config = AppConfig(base_path="/usr/326", database_url="sqlite:///cms.db")
    """

    # Routing
    routes_dir: str | Path = "routes"
    views_dir: str | Path = "views"
    view_extension: str = ".html"
    base_path: str = ""
    root_controller: str = "main"
    api_prefixes: tuple[str, ...] = ("api_", "api-")

    # Database
    database_url: str = "sqlite:///quire.db"
    db_echo: bool = False

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Build a config from ``QUIRE_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            routes_dir=env.get("QUIRE_ROUTES_DIR", defaults.routes_dir),
            views_dir=env.get("QUIRE_VIEWS_DIR", defaults.views_dir),
            base_path=normalize_base_path(env.get("QUIRE_BASE_PATH", defaults.base_path)),
            database_url=env.get("QUIRE_DATABASE_URL", defaults.database_url),
            db_echo=env.get("QUIRE_DB_ECHO", "").strip().lower() in _TRUE,
            log_level=env.get("QUIRE_LOG_LEVEL", defaults.log_level),
        )


def normalize_base_path(base_path: str) -> str:
    """``"usr/326/"`` -> ``"/usr/326"``; empty and ``"/"`` mean no prefix."""
    stripped = base_path.strip().strip("/")
    return f"/{stripped}" if stripped else ""
