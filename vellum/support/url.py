"""
Vellum URL Generator
====================

Builds absolute URLs from configuration and the current request.

Example:
    urls = URL(config, request)

    urls.to("users", {"page": 2})                  # "https://shop.test/users?page=2"
    urls.to("users", {"page": 2}, exclude_host=True)  # "/users?page=2"
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import urlencode, urlsplit

from vellum.core.config import Config
from vellum.http.request import Request


class URL:
    """URL generation bound to one config and one request."""

    def __init__(self, config: Config, request: Request) -> None:
        self.config = config
        self.request = request

    def app_url(self) -> str:
        """
        Base URL of the application, always ending in "/".

        Uses the "app.url" setting when present, otherwise the request's
        scheme and host plus the mount point (ASGI root_path).
        """
        url = self.config.get("app.url")
        if url:
            return url if url.endswith("/") else url + "/"

        mount = self.request.root_path.strip("/")
        return self.request.base_url() + (mount + "/" if mount else "")

    def to(
        self,
        path: str,
        parameters: Optional[Mapping[str, Any]] = None,
        exclude_host: bool = False,
    ) -> str:
        """
        Generate a URL for a path, with optional query parameters.

        Args:
            path: Path relative to the application root
            parameters: Query string parameters
            exclude_host: Return only path and query
        """
        url = self.app_url() + path.lstrip("/")

        if parameters:
            url += "?" + urlencode(parameters, doseq=True)

        if exclude_host:
            parts = urlsplit(url)
            url = parts.path or "/"
            if parts.query:
                url += "?" + parts.query

        return url

    def current(self) -> str:
        """URL of the current request, without the query string."""
        return self.request.base_url() + self.request.path.lstrip("/")
