"""Minimal request and redirect values used at the dispatcher boundary.

The HTTP server is an external collaborator; these are the only shapes
quire's chain runner and base-path middleware rely on.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Request:
    """An incoming request as seen by handler chains."""

    method: str
    path: str
    query_string: str = ""
    path_params: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)

    def with_path_params(self, params: dict[str, Any]) -> Request:
        return replace(self, path_params=params)


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect response."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
