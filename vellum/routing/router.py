"""
Vellum Router
=============

Route table keyed by HTTP method and URI pattern, with dispatch.

Route Patterns:
    /users              - Static path
    /users/{id}         - Dynamic segment (string)
    /users/{id:int}     - Typed segment (integer)

An action is either a callable or a (ControllerClass, "method_name") pair.
Actions receive the request followed by the path parameters as keywords.

Example:
    router = Router()

    @router.get("/users/{id:int}")
    def show_user(request, id):
        return f"user {id}"

    router.post("/users", (UserController, "store"))

    response = router.dispatch(request)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple, Union

from vellum.exceptions import RouteDefinitionError, RouteNotFoundError
from vellum.utils.logger import get_logger

logger = get_logger("vellum.routing")

Action = Union[Callable[..., Any], Tuple[type, str]]

# Type converters for route parameters
TYPE_CONVERTERS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "slug": (r"[a-z0-9]+(?:-[a-z0-9]+)*", str),
}

_PARAM = re.compile(r"^\{(\w+)(?::(\w+))?\}$")


@dataclass
class Route:
    """
    A registered route.

    Attributes:
        uri: Original URI pattern
        method: HTTP method
        action: Callable or (controller class, method name)
        name: Optional route name for URL generation
    """

    uri: str
    method: str
    action: Action
    name: Optional[str] = None
    pattern: Pattern[str] = field(init=False, repr=False)
    param_types: Dict[str, str] = field(init=False, repr=False, default_factory=dict)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.uri = "/" + self.uri.strip("/")
        self._compile_pattern()

    def _compile_pattern(self) -> None:
        parts: List[str] = []

        for segment in self.uri.strip("/").split("/"):
            if not segment:
                continue

            param = _PARAM.match(segment)
            if param is None:
                parts.append(re.escape(segment))
                continue

            name, type_name = param.group(1), param.group(2) or "str"
            if type_name not in TYPE_CONVERTERS:
                raise RouteDefinitionError(
                    f"Unknown parameter type '{type_name}' in route {self.uri}"
                )
            self.param_types[name] = type_name
            parts.append(f"(?P<{name}>{TYPE_CONVERTERS[type_name][0]})")

        self.pattern = re.compile("^/" + "/".join(parts) + "/?$")

    @property
    def is_static(self) -> bool:
        """True when the route has no parameters."""
        return not self.param_types

    def match(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Match a path against this route.

        Returns converted parameters if matched, None otherwise.
        """
        found = self.pattern.match(path)
        if found is None:
            return None

        return {
            name: TYPE_CONVERTERS[self.param_types[name]][1](value)
            for name, value in found.groupdict().items()
        }

    def url(self, **params: Any) -> str:
        """
        Build a path from this route.

        Example:
            Route("/users/{id:int}", "GET", show).url(id=42)  # "/users/42"
        """
        missing = set(self.param_types) - set(params)
        if missing:
            raise ValueError(f"Missing route parameters: {', '.join(sorted(missing))}")

        path = self.uri
        for name, value in params.items():
            path = re.sub(rf"\{{{name}(?::\w+)?\}}", str(value), path)
        return path

    def get_action(self) -> Action:
        """Get the route action."""
        return self.action


class Router:
    """
    Route registry keyed by (method, uri).

    Routes match in registration order; static routes are checked before
    dynamic ones.
    """

    def __init__(self) -> None:
        self._routes: Dict[Tuple[str, str], Route] = {}
        self._named: Dict[str, Route] = {}

    def add(
        self,
        method: str,
        uri: str,
        action: Action,
        *,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route.

        Raises:
            RouteDefinitionError: Same method and URI already registered,
                or the action is neither callable nor a controller pair
        """
        _check_action(action)
        route = Route(uri=uri, method=method, action=action, name=name)
        key = (route.method, route.uri)

        if key in self._routes:
            raise RouteDefinitionError(f"Route already defined: {route.method} {route.uri}")

        self._routes[key] = route
        if name:
            self._named[name] = route

        logger.debug("Route registered", method=route.method, uri=route.uri)
        return route

    def _register(self, method: str, uri: str, action: Optional[Action], name: Optional[str]) -> Any:
        if action is not None:
            return self.add(method, uri, action, name=name)

        def decorator(handler: Callable[..., Any]) -> Callable[..., Any]:
            self.add(method, uri, handler, name=name)
            return handler

        return decorator

    def get(self, uri: str, action: Optional[Action] = None, *, name: Optional[str] = None) -> Any:
        """Register a GET route, directly or as a decorator."""
        return self._register("GET", uri, action, name)

    def post(self, uri: str, action: Optional[Action] = None, *, name: Optional[str] = None) -> Any:
        """Register a POST route."""
        return self._register("POST", uri, action, name)

    def put(self, uri: str, action: Optional[Action] = None, *, name: Optional[str] = None) -> Any:
        """Register a PUT route."""
        return self._register("PUT", uri, action, name)

    def patch(self, uri: str, action: Optional[Action] = None, *, name: Optional[str] = None) -> Any:
        """Register a PATCH route."""
        return self._register("PATCH", uri, action, name)

    def delete(self, uri: str, action: Optional[Action] = None, *, name: Optional[str] = None) -> Any:
        """Register a DELETE route."""
        return self._register("DELETE", uri, action, name)

    def match(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, Any]]]:
        """
        Find the route for a method and path.

        HEAD requests fall back to GET routes.

        Returns:
            (route, params) or None
        """
        method = method.upper()
        normalized = "/" + path.strip("/")

        candidates = [method, "GET"] if method == "HEAD" else [method]
        for candidate in candidates:
            static = self._routes.get((candidate, normalized))
            if static is not None and static.is_static:
                return static, {}

            for (route_method, _), route in self._routes.items():
                if route_method != candidate or route.is_static:
                    continue
                params = route.match(normalized)
                if params is not None:
                    return route, params

        return None

    def dispatch(self, request: Any) -> Any:
        """
        Call the action matching request.method and request.path.

        Raises:
            RouteNotFoundError: No route matches
        """
        found = self.match(request.method, request.path)
        if found is None:
            raise RouteNotFoundError(request.method, request.path)

        route, params = found
        return _resolve_action(route.action)(request, **params)

    def url(self, name: str, **params: Any) -> str:
        """Build the path of a named route."""
        if name not in self._named:
            raise KeyError(f"Route '{name}' not found")
        return self._named[name].url(**params)

    def routes(self) -> List[Route]:
        """Get all registered routes, in registration order."""
        return list(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)


def _check_action(action: Action) -> None:
    if callable(action):
        return
    if (
        isinstance(action, tuple)
        and len(action) == 2
        and isinstance(action[0], type)
        and isinstance(action[1], str)
        and callable(getattr(action[0], action[1], None))
    ):
        return
    raise RouteDefinitionError(f"Invalid route action: {action!r}")


def _resolve_action(action: Action) -> Callable[..., Any]:
    """Turn a controller pair into a bound method on a fresh controller."""
    if isinstance(action, tuple):
        controller, method_name = action
        return getattr(controller(), method_name)
    return action
