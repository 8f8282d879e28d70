"""View templates as routes.

The composer only needs a template's logical name (``"story/extra"``)
and whether it exists; rendering belongs to a ``Renderer``.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from quire.http import Request
from quire.routing.chain import Next, invoke
from quire.routing.route import Handler


class Renderer(Protocol):
    """Anything that turns a logical template name plus context into a response."""

    def render(self, template_name: str, context: Mapping[str, Any]) -> Any: ...


def list_views(views_dir: str | Path, controller: str, extension: str = ".html") -> tuple[str, ...]:
    """View names (file stems) under ``views_dir/controller``, sorted.

    A controller without a view directory has no views.
    """
    directory = Path(views_dir) / controller
    if not directory.is_dir():
        return ()
    return tuple(
        sorted(
            item.stem
            for item in directory.iterdir()
            if item.is_file() and item.suffix == extension and not item.name.startswith(("_", "."))
        )
    )


def render_handler(renderer: Renderer, template_name: str) -> Handler:
    """A generated render-only handler for *template_name*."""

    async def render_view(request: Request, next: Next) -> Any:  # noqa: A002
        return await invoke(renderer.render, template_name, {"request": request})

    render_view.template = template_name  # type: ignore[attr-defined]
    render_view.__qualname__ = f"render_view[{template_name}]"
    return render_view
