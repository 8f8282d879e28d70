"""Quire: the framework core of a story/collection CMS backend.

Two pieces carry the rest of the application:

A fluent, immutable SQL query builder over one guarded connection::

    from quire.data import Executor

    db = Executor("sqlite:///cms.db")
    stories = await (
        db.table("stories")
        .filter_equals("user_id", user_id)
        .order_by("created_at", "DESC")
        .get()
    )

A route composer that turns controller modules and view directories
into a frozen route table at startup::

    from quire.routing import RouteComposer

    table = RouteComposer(base_path="/usr/326").compose_directories("routes", "views")
"""

__version__ = "0.1.0"

from quire.config import AppConfig
from quire.errors import (
    ConfigurationError,
    HTTPError,
    MethodNotAllowed,
    NotFound,
    QuireError,
    StartupError,
)

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
    "QuireError",
    "StartupError",
    "__version__",
]
