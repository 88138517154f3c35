"""
Vellum Request Object
=====================

Request-scoped, read-only view of the incoming HTTP request.

Query string and form data are plain single-valued mappings, frozen when
the request is built. Nothing reads process-wide state; handlers receive
the request explicitly.

Example:
    request = await Request.from_scope(scope, receive)

    page = request.get("page", "1")
    email = request.input("email")

    validator = request.validate({"email": "required|email"})
    if validator.errors():
        ...
"""

from __future__ import annotations

from http.cookies import SimpleCookie
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)
from urllib.parse import parse_qs, urlencode

import orjson

from vellum.validation.validator import Validator

Receive = Callable[[], Awaitable[Dict[str, Any]]]


class Headers:
    """
    Case-insensitive HTTP headers container.

    Example:
        headers["Content-Type"]  # application/json
        headers["content-type"]  # application/json (same)
    """

    def __init__(
        self,
        raw_headers: Union[Mapping[str, str], Iterable[Tuple[Any, Any]], None] = None,
    ) -> None:
        self._headers: Dict[str, str] = {}

        items = raw_headers.items() if isinstance(raw_headers, Mapping) else (raw_headers or [])
        for key, value in items:
            if isinstance(key, bytes):
                key = key.decode("latin-1")
            if isinstance(value, bytes):
                value = value.decode("latin-1")
            self._headers[key.lower()] = value

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._headers.get(key.lower(), default)

    def __getitem__(self, key: str) -> str:
        return self._headers[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._headers

    def items(self) -> List[Tuple[str, str]]:
        return list(self._headers.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._headers)


def _first_values(parsed: Mapping[str, List[str]]) -> Dict[str, str]:
    """Collapse parse_qs output to the first value of each key."""
    return {key: values[0] for key, values in parsed.items() if values}


class Request:
    """
    HTTP request encapsulation.

    Attributes are fixed at construction; query and form data are exposed
    through read-only mappings.
    """

    __slots__ = (
        "method",
        "path",
        "scheme",
        "root_path",
        "headers",
        "cookies",
        "_query",
        "_form",
    )

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        query: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
        headers: Union[Mapping[str, str], Iterable[Tuple[Any, Any]], None] = None,
        scheme: str = "http",
        root_path: str = "",
        cookies: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.method = method.upper()
        self.path = path or "/"
        self.scheme = scheme
        self.root_path = root_path
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        self.cookies: Mapping[str, str] = MappingProxyType(dict(cookies or {}))
        self._query: Mapping[str, Any] = MappingProxyType(dict(query or {}))
        self._form: Mapping[str, Any] = MappingProxyType(dict(form or {}))

    @classmethod
    async def from_scope(cls, scope: Dict[str, Any], receive: Receive) -> "Request":
        """
        Create a request from an ASGI scope, reading the whole body.

        Supports application/x-www-form-urlencoded and application/json.
        A JSON body that is not an object yields empty form data.
        """
        headers = Headers(scope.get("headers", []))
        body = await _read_body(receive)

        form: Dict[str, Any] = {}
        content_type = headers.get("content-type", "") or ""
        if body and "application/x-www-form-urlencoded" in content_type:
            form = _first_values(parse_qs(body.decode("utf-8"), keep_blank_values=True))
        elif body and "application/json" in content_type:
            payload = orjson.loads(body)
            if isinstance(payload, dict):
                form = payload

        query_string = scope.get("query_string", b"")
        if isinstance(query_string, bytes):
            query_string = query_string.decode("utf-8")

        return cls(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            query=_first_values(parse_qs(query_string, keep_blank_values=True)),
            form=form,
            headers=headers,
            scheme=scope.get("scheme", "http"),
            root_path=scope.get("root_path", ""),
            cookies=_parse_cookies(headers.get("cookie", "")),
        )

    @property
    def query(self) -> Mapping[str, Any]:
        """Read-only query parameters."""
        return self._query

    @property
    def form(self) -> Mapping[str, Any]:
        """Read-only form parameters."""
        return self._form

    def get(self, name: str, default: Any = None) -> Any:
        """Get a query string parameter."""
        return self._query.get(name, default)

    def input(self, name: str, default: Any = None) -> Any:
        """Get a form parameter."""
        return self._form.get(name, default)

    def all(self) -> Dict[str, Any]:
        """Get a copy of all form data."""
        return dict(self._form)

    def validate(self, rules: Mapping[str, str]) -> Validator:
        """
        Validate form data against rule strings.

        Returns the validator after one validation pass; inspect
        validator.errors() for failures.

        Raises:
            RuleNotImplementedError: The rules name an unknown rule
        """
        validator = Validator(self.all(), rules)
        validator.validate()
        return validator

    @property
    def host(self) -> str:
        return self.headers.get("host", "localhost") or "localhost"

    def base_url(self) -> str:
        """Scheme and host with a trailing slash, e.g. "https://example.com/"."""
        return f"{self.scheme}://{self.host}/"

    @property
    def url(self) -> str:
        """Full request URL including the query string."""
        url = self.base_url() + self.path.lstrip("/")
        if self._query:
            url += "?" + urlencode(dict(self._query))
        return url

    @property
    def is_secure(self) -> bool:
        """Check if request is over HTTPS."""
        return self.scheme == "https"

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"


async def _read_body(receive: Receive) -> bytes:
    chunks: List[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            raise ConnectionError("Client disconnected")
        if message["type"] == "http.request":
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
    return b"".join(chunks)


def _parse_cookies(header: str) -> Dict[str, str]:
    if not header:
        return {}
    cookie = SimpleCookie()
    cookie.load(header)
    return {key: morsel.value for key, morsel in cookie.items()}
