"""
Vellum Views
============

Render HTML view files with data bindings.

Views are looked up by file path, or by dotted name under the views
directory ("users.show" -> "<views>/users/show.html"). Placeholders use
double braces and dotted names; values are HTML-escaped:

    <h1>{{ title }}</h1>
    <p>{{ user.name }}</p>

Rendering never raises. render() returns a RenderResult and the caller
decides how to report a failure.

Example:
    result = View.make("users.show", {"user": user}).render()
    if result.ok:
        body = result.content
    else:
        logger.error("View failed", exception=result.error)
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from vellum.core.config import get_config
from vellum.exceptions import TemplateError, TemplateNotFoundError, TemplateRenderError
from vellum.utils.helpers import get_nested, has_nested
from vellum.utils.logger import get_logger

logger = get_logger("vellum.view")

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}")


@dataclass(frozen=True)
class RenderResult:
    """Outcome of rendering a view: content on success, error on failure."""

    content: Optional[str] = None
    error: Optional[TemplateError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the content or raise the rendering error."""
        if self.error is not None:
            raise self.error
        return self.content or ""


class View:
    """
    A view file plus its bindings and response headers.
    """

    def __init__(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        views_path: Union[str, Path, None] = None,
    ) -> None:
        self.path = path
        self.data: Dict[str, Any] = dict(data or {})
        self.views_path = Path(views_path or get_config().get("views.path", "resources/views"))
        self._headers: Dict[str, str] = {}

    @classmethod
    def make(
        cls,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        views_path: Union[str, Path, None] = None,
    ) -> "View":
        return cls(path, data, views_path)

    def with_data(self, key: str, value: Any) -> "View":
        """Bind one more value."""
        self.data[key] = value
        return self

    def with_header(self, name: str, value: str) -> "View":
        self._headers[name] = value
        return self

    def with_headers(self, headers: Mapping[str, str]) -> "View":
        """Replace all response headers."""
        self._headers = dict(headers)
        return self

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def resolve(self) -> Path:
        """
        Find the view file.

        Raises:
            TemplateNotFoundError: Neither the literal path nor the dotted
                name under the views directory exists
        """
        literal = Path(self.path)
        if literal.is_file():
            return literal

        extension = get_config().get("views.extension", ".html")
        candidate = self.views_path.joinpath(*self.path.split(".")).with_suffix(extension)
        if candidate.is_file():
            return candidate

        raise TemplateNotFoundError(f"View not found: {self.path}")

    def render(self) -> RenderResult:
        """Render the view. Failures are returned, not raised."""
        try:
            source = self.resolve().read_text(encoding="utf-8")
            content = _PLACEHOLDER.sub(self._substitute, source)
        except TemplateError as exc:
            logger.error("View rendering failed", exception=exc, view=self.path)
            return RenderResult(error=exc)
        except (OSError, UnicodeDecodeError) as exc:
            error = TemplateRenderError(f"Cannot read view {self.path}: {exc}")
            error.__cause__ = exc
            logger.error("View rendering failed", exception=error, view=self.path)
            return RenderResult(error=error)

        return RenderResult(content=content)

    def _substitute(self, match: "re.Match[str]") -> str:
        name = match.group(1)
        if not has_nested(self.data, name):
            raise TemplateRenderError(f"Undefined variable '{name}' in view {self.path}")

        value = get_nested(self.data, name)
        return "" if value is None else html.escape(str(value))

    def __repr__(self) -> str:
        return f"<View {self.path}>"
