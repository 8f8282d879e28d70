"""Handler chains. Validators first, the handler last.

Every entry in a chain has the same shape::

    async def validate_story(request, next):
        if not request.body.get("title"):
            return {"error": "title required"}
        return await next(request)

    async def create_story(request, next):
        ...

An entry either answers (returns a value) or calls ``next(request)`` to
pass control down the chain. Entries may be ``def`` or ``async def``.
Calling ``next`` past the last entry raises ``NotFound``.
"""

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from quire.errors import NotFound
from quire.http import Request
from quire.routing.route import Handler

type Next = Callable[..., Awaitable[Any]]


async def invoke(handler: Handler, *args: Any) -> Any:
    """Call a sync or async handler and await the result if needed."""
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_chain(handlers: Sequence[Handler], request: Request) -> Any:
    """Run *handlers* in order against *request* and return the answer."""

    async def call(index: int, current: Request) -> Any:
        if index >= len(handlers):
            raise NotFound(f"Handler chain for {current.method} {current.path} fell through")

        async def next_(next_request: Request | None = None) -> Any:
            return await call(index + 1, next_request or current)

        return await invoke(handlers[index], current, next_)

    return await call(0, request)
