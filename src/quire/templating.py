"""Kida-backed view renderer.

The route composer hands generated view routes a logical template name
such as ``"story/index"``; ``KidaRenderer`` resolves it to
``views/story/index.html`` and renders it.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from kida import Environment, FileSystemLoader


class KidaRenderer:
    """Renders view templates from one views directory.

    Usage::

        renderer = KidaRenderer("views", globals_={"app_name": "Continuum"})
        html = renderer.render("story/index", {"stories": stories})
    """

    __slots__ = ("_env", "extension")

    def __init__(
        self,
        views_dir: str | Path,
        *,
        extension: str = ".html",
        globals_: Mapping[str, Any] | None = None,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        auto_reload: bool = False,
    ) -> None:
        self.extension = extension
        self._env = Environment(
            loader=FileSystemLoader(str(views_dir)),
            autoescape=True,
            auto_reload=auto_reload,
        )
        if filters:
            self._env.update_filters(dict(filters))
        for name, value in (globals_ or {}).items():
            self._env.add_global(name, value)

    def template_file(self, template_name: str) -> str:
        """``"story/index"`` -> ``"story/index.html"``."""
        if Path(template_name).suffix:
            return template_name
        return f"{template_name}{self.extension}"

    def render(self, template_name: str, context: Mapping[str, Any]) -> str:
        template = self._env.get_template(self.template_file(template_name))
        return template.render(dict(context))
