"""Quire exception hierarchy.

Shared across the data layer, the route composer, and the reference
dispatcher so every module raises and catches the same types.
"""

from dataclasses import dataclass


class QuireError(Exception):
    """Base for all quire-specific errors."""


class ConfigurationError(QuireError):
    """Raised when configuration or route declarations are invalid."""


class StartupError(ConfigurationError):
    """Raised when the route table cannot be built at boot.

    Missing routes/views directories, controllers that fail to import,
    and unresolvable handler references all end here. The process must
    not start serving with a partial route table.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(QuireError):
    """An error that maps directly to an HTTP status code."""

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched, or a handler chain fell through."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path exists but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            headers=(("Allow", allow_value),),
        )
