"""Convention-driven route composition and a frozen route table.

Routes are composed once at startup from controller modules and view
directories, then read-only for the life of the process.
"""

from quire.routing.chain import invoke, run_chain
from quire.routing.composer import ComposerState, RouteComposer, mount_prefix, parse_route_key
from quire.routing.controller import Controller
from quire.routing.route import RouteDefinition, RouteMatch
from quire.routing.router import Router
from quire.routing.table import RouteTable, RouteTableBuilder
from quire.routing.views import Renderer, render_handler

__all__ = [
    "ComposerState",
    "Controller",
    "Renderer",
    "RouteComposer",
    "RouteDefinition",
    "RouteMatch",
    "RouteTable",
    "RouteTableBuilder",
    "Router",
    "invoke",
    "mount_prefix",
    "parse_route_key",
    "render_handler",
    "run_chain",
]
