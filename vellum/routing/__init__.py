"""
Vellum Routing
==============

Route definitions and URI-to-action dispatch.
"""

from vellum.exceptions import RouteDefinitionError, RouteNotFoundError
from vellum.routing.router import Route, Router

__all__ = [
    "Route",
    "Router",
    "RouteDefinitionError",
    "RouteNotFoundError",
]
