"""Tests for quire.routing.composer: convention and explicit route composition."""

import logging
import textwrap
from pathlib import Path

import pytest

from quire.config import AppConfig
from quire.errors import ConfigurationError, StartupError
from quire.http import Request
from quire.routing import (
    ComposerState,
    Controller,
    RouteComposer,
    Router,
    mount_prefix,
    parse_route_key,
)
from quire.routing.composer import flatten_chain


class FakeRenderer:
    """Records render calls and answers with the template name."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def render(self, template_name: str, context: dict) -> str:
        self.calls.append((template_name, dict(context)))
        return f"<rendered {template_name}>"


# -- Handlers --


async def validate_story(request, next):
    if not request.body.get("title"):
        return {"error": "title required"}
    return await next(request)


async def create(request, next):
    return {"created": request.body["title"]}


async def index(request, next):
    return "story index"


def edit(request, next):
    return "edit form"


def _chain(table, method: str, path: str) -> tuple:
    route = table.find(method, path)
    assert route is not None, f"{method} {path} not registered"
    return route.handlers


# =============================================================================
# Mount prefixes and route keys
# =============================================================================


class TestMountPrefix:
    def test_root_controller(self) -> None:
        assert mount_prefix("main") == ""

    def test_plain_controller(self) -> None:
        assert mount_prefix("story") == "/story"

    def test_api_underscore(self) -> None:
        assert mount_prefix("api_story") == "/api/story"

    def test_api_dash(self) -> None:
        assert mount_prefix("api-collections") == "/api/collections"

    def test_bare_api_is_plain(self) -> None:
        assert mount_prefix("api_") == "/api_"

    def test_custom_root(self) -> None:
        assert mount_prefix("home", root_controller="home") == ""
        assert mount_prefix("main", root_controller="home") == "/main"

    def test_base_path_prepended(self) -> None:
        composer = RouteComposer(base_path="usr/326/")
        assert composer.prefix_for("main") == "/usr/326"
        assert composer.prefix_for("story") == "/usr/326/story"
        assert composer.prefix_for("api_story") == "/usr/326/api/story"


class TestParseRouteKey:
    def test_method_and_path(self) -> None:
        assert parse_route_key("POST /story") == ("POST", "/story")

    def test_lowercase_method(self) -> None:
        assert parse_route_key("delete /story/{id}") == ("DELETE", "/story/{id}")

    def test_bare_path_is_get(self) -> None:
        assert parse_route_key("/about") == ("GET", "/about")

    def test_unknown_method(self) -> None:
        with pytest.raises(StartupError, match="Unknown HTTP method"):
            parse_route_key("FETCH /story")

    def test_malformed(self) -> None:
        with pytest.raises(StartupError, match="METHOD /path"):
            parse_route_key("GET story")


class TestFlattenChain:
    def test_nested_and_strings(self) -> None:
        controller = Controller.from_functions("story", validate_story, create)
        assert flatten_chain(controller, ["validate_story", [create]]) == [validate_story, create]

    def test_unresolved_string_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        controller = Controller.from_functions("story", create)
        with caplog.at_level(logging.WARNING, logger="quire.routing"):
            handlers = flatten_chain(controller, ["missing", "create"])
        assert handlers == [create]
        assert "dropping unresolved handler 'missing'" in caplog.text

    def test_non_callable_raises(self) -> None:
        controller = Controller.from_functions("story")
        with pytest.raises(StartupError, match="is not a handler"):
            flatten_chain(controller, [42])


# =============================================================================
# Explicit route maps
# =============================================================================


class TestExplicitRoutes:
    def test_routes_map_in_declaration_order(self) -> None:
        controller = Controller.from_functions(
            "story",
            index,
            validate_story,
            create,
            routes={"GET /": "index", "POST /": ["validate_story", "create"]},
        )
        table = RouteComposer().compose([controller])

        assert [(r.method, r.path) for r in table] == [("GET", "/story"), ("POST", "/story")]
        assert _chain(table, "GET", "/story") == (index,)
        assert _chain(table, "POST", "/story") == (validate_story, create)

    def test_explicit_map_disables_inference(self) -> None:
        controller = Controller.from_functions(
            "story", index, edit, routes={"GET /": index}
        )
        table = RouteComposer().compose([controller], {"story": ("extra",)})
        assert len(table) == 1

    def test_direct_callables_and_params(self) -> None:
        controller = Controller.from_functions(
            "api_story", routes={"GET /{id:int}": index, "DELETE /{id:int}": [edit]}
        )
        table = RouteComposer().compose([controller])
        assert table.find("GET", "/api/story/{id:int}") is not None
        assert table.find("DELETE", "/api/story/{id:int}").controller == "api_story"

    def test_chain_resolving_to_nothing_fails(self) -> None:
        controller = Controller.from_functions("story", routes={"GET /": "missing"})
        with pytest.raises(StartupError, match="resolved to no handlers"):
            RouteComposer().compose([controller])

    def test_bad_route_key_names_controller(self) -> None:
        controller = Controller.from_functions("story", index, routes={"FETCH /": "index"})
        with pytest.raises(StartupError, match="Unknown HTTP method"):
            RouteComposer().compose([controller])

    @pytest.mark.parametrize("key", ["GET /:id", "GET /<id>"])
    def test_unsupported_param_syntax_fails_startup(self, key: str) -> None:
        controller = Controller.from_functions("story", index, routes={key: "index"})
        with pytest.raises(StartupError, match="Controller 'story': .*write path parameters"):
            RouteComposer().compose([controller])

    def test_route_name(self) -> None:
        controller = Controller.from_functions("story", create, routes={"POST /": "create"})
        table = RouteComposer().compose([controller])
        assert table.find("POST", "/story").name == "story.create"


# =============================================================================
# Convention inference
# =============================================================================


class TestConventions:
    def test_functions_and_views(self) -> None:
        renderer = FakeRenderer()
        controller = Controller.from_functions("story", edit)
        table = RouteComposer(renderer=renderer).compose(
            [controller], {"story": ("edit", "extra", "index")}
        )

        assert [(r.method, r.path) for r in table] == [
            ("GET", "/story"),
            ("GET", "/story/edit"),
            ("GET", "/story/extra"),
        ]
        assert _chain(table, "GET", "/story/edit") == (edit,)
        assert table.find("GET", "/story").handler.template == "story/index"
        assert table.find("GET", "/story/extra").handler.template == "story/extra"

    def test_index_function_beats_index_view(self) -> None:
        controller = Controller.from_functions("story", index)
        table = RouteComposer(renderer=FakeRenderer()).compose([controller], {"story": ("index",)})
        assert len(table) == 1
        assert _chain(table, "GET", "/story") == (index,)

    def test_root_controller_mounts_at_slash(self) -> None:
        controller = Controller.from_functions("main", index, edit)
        table = RouteComposer().compose([controller])
        assert [r.path for r in table] == ["/", "/edit"]

    def test_api_controller_gets_no_view_routes(self) -> None:
        controller = Controller.from_functions("api_story", index)
        table = RouteComposer(renderer=FakeRenderer()).compose(
            [controller], {"api_story": ("extra",)}
        )
        assert [r.path for r in table] == ["/api/story"]

    def test_views_without_renderer_fail(self) -> None:
        controller = Controller.from_functions("story")
        with pytest.raises(StartupError, match="no renderer"):
            RouteComposer().compose([controller], {"story": ("index",)})

    def test_controller_without_anything(self) -> None:
        assert len(RouteComposer().compose([Controller.from_functions("story")])) == 0

    def test_base_path(self) -> None:
        table = RouteComposer(base_path="/usr/326").compose(
            [Controller.from_functions("main", index), Controller.from_functions("story", edit)]
        )
        assert [r.path for r in table] == ["/usr/326", "/usr/326/story/edit"]

    def test_first_registration_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        # main exports "story", which collides with story's index
        def story(request, next):
            return "from main"

        main = Controller.from_functions("main", story)
        other = Controller.from_functions("story", index)
        with caplog.at_level(logging.WARNING, logger="quire.routing"):
            table = RouteComposer().compose([main, other])

        assert len(table) == 1
        assert _chain(table, "GET", "/story") == (story,)
        assert "already registered" in caplog.text

    async def test_generated_view_renders(self) -> None:
        renderer = FakeRenderer()
        table = RouteComposer(renderer=renderer).compose(
            [Controller.from_functions("story")], {"story": ("extra",)}
        )
        answer = await Router.from_table(table).dispatch(Request("GET", "/story/extra"))
        assert answer == "<rendered story/extra>"
        assert renderer.calls[0][0] == "story/extra"
        assert renderer.calls[0][1]["request"].path == "/story/extra"


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    def test_states(self) -> None:
        composer = RouteComposer()
        assert composer.state is ComposerState.UNCONFIGURED
        composer.compose([])
        assert composer.state is ComposerState.REGISTERED

    def test_table_before_compose(self) -> None:
        with pytest.raises(ConfigurationError, match="not been composed"):
            _ = RouteComposer().table

    def test_compose_twice_fails(self) -> None:
        composer = RouteComposer()
        composer.compose([])
        with pytest.raises(ConfigurationError, match="already ran"):
            composer.compose([])

    def test_table_is_kept(self) -> None:
        composer = RouteComposer()
        table = composer.compose([Controller.from_functions("main", index)])
        assert composer.table is table

    def test_from_config(self) -> None:
        config = AppConfig(base_path="/usr/326", root_controller="home")
        composer = RouteComposer.from_config(config)
        assert composer.prefix_for("home") == "/usr/326"


# =============================================================================
# Filesystem discovery
# =============================================================================


def _write(path: Path, text: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text))


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    _write(
        tmp_path / "routes" / "main.py",
        """
        def index(request, next):
            return "home"
        """,
    )
    _write(
        tmp_path / "routes" / "story.py",
        """
        from os.path import join  # imported helpers are not routes

        def validate_story(request, next):
            if not request.body.get("title"):
                return {"error": "title required"}
            return next(request)

        def create(request, next):
            return {"created": request.body["title"]}

        def _private(request, next):
            return None

        routes = {
            "GET /": "index",
            "POST /": ["validate_story", "create"],
        }

        def index(request, next):
            return "stories"
        """,
    )
    _write(
        tmp_path / "routes" / "collections.py",
        """
        def edit(request, next):
            return "edit"
        """,
    )
    _write(
        tmp_path / "routes" / "api_story.py",
        """
        def index(request, next):
            return []
        """,
    )
    _write(tmp_path / "routes" / "_helpers.py", "raise RuntimeError('never imported')\n")
    _write(tmp_path / "routes" / "notes.txt", "not a controller")
    for name in ("index", "edit", "extra", "_partial"):
        _write(tmp_path / "views" / "collections" / f"{name}.html", f"<p>{name}</p>")
    _write(tmp_path / "views" / "api_story" / "extra.html", "<p>api</p>")
    return tmp_path


class TestDiscovery:
    def test_compose_directories(self, app_dir: Path) -> None:
        composer = RouteComposer(renderer=FakeRenderer())
        table = composer.compose_directories(app_dir / "routes", app_dir / "views")

        assert [(r.method, r.path) for r in table] == [
            ("GET", "/api/story"),
            ("GET", "/collections"),
            ("GET", "/collections/edit"),
            ("GET", "/collections/extra"),
            ("GET", "/"),
            ("GET", "/story"),
            ("POST", "/story"),
        ]
        assert [h.__name__ for h in _chain(table, "POST", "/story")] == [
            "validate_story",
            "create",
        ]
        assert composer.state is ComposerState.REGISTERED

    async def test_compose_directories_async(self, app_dir: Path) -> None:
        composer = RouteComposer(renderer=FakeRenderer(), base_path="/usr/326")
        table = await composer.compose_directories_async(app_dir / "routes", app_dir / "views")
        assert table.find("GET", "/usr/326") is not None
        assert table.find("POST", "/usr/326/story") is not None

    async def test_discovered_chain_runs(self, app_dir: Path) -> None:
        table = RouteComposer(renderer=FakeRenderer()).compose_directories(
            app_dir / "routes", app_dir / "views"
        )
        router = Router.from_table(table)
        rejected = await router.dispatch(Request("POST", "/story", body={}))
        accepted = await router.dispatch(Request("POST", "/story", body={"title": "Dune"}))
        assert rejected == {"error": "title required"}
        assert accepted == {"created": "Dune"}

    def test_missing_routes_dir(self, tmp_path: Path) -> None:
        (tmp_path / "views").mkdir()
        with pytest.raises(StartupError, match="Routes directory not found"):
            RouteComposer().compose_directories(tmp_path / "routes", tmp_path / "views")

    def test_missing_views_dir(self, tmp_path: Path) -> None:
        (tmp_path / "routes").mkdir()
        with pytest.raises(StartupError, match="Views directory not found"):
            RouteComposer().compose_directories(tmp_path / "routes", tmp_path / "views")

    def test_import_failure(self, tmp_path: Path) -> None:
        _write(tmp_path / "routes" / "broken.py", "import no_such_module_here\n")
        (tmp_path / "views").mkdir()
        with pytest.raises(StartupError, match="'broken' failed to import"):
            RouteComposer().compose_directories(tmp_path / "routes", tmp_path / "views")

    def test_routes_must_be_mapping(self, tmp_path: Path) -> None:
        _write(tmp_path / "routes" / "story.py", "routes = ['GET /']\n")
        (tmp_path / "views").mkdir()
        with pytest.raises(StartupError, match="must be a mapping"):
            RouteComposer().compose_directories(tmp_path / "routes", tmp_path / "views")

    def test_dunder_all_limits_exports(self, tmp_path: Path) -> None:
        _write(
            tmp_path / "routes" / "story.py",
            """
            __all__ = ["index"]

            def index(request, next):
                return "i"

            def helper(request, next):
                return "h"
            """,
        )
        (tmp_path / "views").mkdir()
        table = RouteComposer().compose_directories(tmp_path / "routes", tmp_path / "views")
        assert [r.path for r in table] == ["/story"]
