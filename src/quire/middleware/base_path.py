"""Base-path enforcement and redirect rewriting.

Some deployments serve the whole site under a fixed prefix
(``/usr/326``). ``BasePathMiddleware`` keeps every request and every
redirect under that prefix:

- a request outside the prefix is redirected to ``prefix + path + query``
- a ``Redirect`` returned by a handler to a root-relative URL (``/login``)
  is rewritten to ``/usr/326/login``

::

    middleware = BasePathMiddleware(BasePathPolicy("/usr/326"))
    answer = await middleware(request, router.dispatch)
"""

from dataclasses import dataclass, replace
from typing import Any

from quire.config import normalize_base_path
from quire.http import Redirect, Request
from quire.routing.chain import Next


@dataclass(frozen=True, slots=True)
class BasePathPolicy:
    """The mandatory URL prefix. An empty prefix disables both rules."""

    base_path: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_path", normalize_base_path(self.base_path))

    def _inside(self, path: str) -> bool:
        return path == self.base_path or path.startswith(f"{self.base_path}/")

    def enforce(self, path: str, query_string: str = "") -> str | None:
        """Redirect target for a request outside the prefix, else ``None``."""
        if not self.base_path or self._inside(path):
            return None
        target = f"{self.base_path}{path if path.startswith('/') else '/' + path}"
        return f"{target}?{query_string}" if query_string else target

    def rewrite(self, url: str) -> str:
        """Prefix a root-relative redirect URL.

        Protocol-relative (``//host``), absolute and relative URLs, and
        URLs already under the prefix, are returned unchanged.
        """
        if not self.base_path or not url.startswith("/") or url.startswith("//"):
            return url
        if self._inside(url.split("?", 1)[0]):
            return url
        return f"{self.base_path}{url}"


class BasePathMiddleware:
    """``(request, next)`` middleware applying a ``BasePathPolicy``."""

    __slots__ = ("policy",)

    def __init__(self, policy: BasePathPolicy) -> None:
        self.policy = policy

    async def __call__(self, request: Request, next: Next) -> Any:  # noqa: A002
        target = self.policy.enforce(request.path, request.query_string)
        if target is not None:
            return Redirect(target)
        answer = await next(request)
        if isinstance(answer, Redirect):
            return replace(answer, url=self.policy.rewrite(answer.url))
        return answer
