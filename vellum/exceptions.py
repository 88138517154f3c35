"""
Vellum Exceptions
=================

Error hierarchy shared by every Vellum component.

Two families matter most to callers:
- ConfigurationError: programmer mistakes (unknown rules, duplicate routes).
  Log and alert on these, never show them to end users.
- ValidationError: user input failed its rules. Render these back as
  form errors or a 422 response.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class VellumError(Exception):
    """Base class for all Vellum errors."""


class ConfigurationError(VellumError):
    """Raised when the application itself is misconfigured."""


class RuleNotImplementedError(ConfigurationError):
    """
    Raised when a rule string names a rule that does not exist.

    Aborts the entire validation pass.
    """

    def __init__(self, rule: str, field: Optional[str] = None) -> None:
        self.rule = rule
        self.field = field
        if field:
            message = f"Validation rule not implemented: '{rule}' (field '{field}')"
        else:
            message = f"Validation rule not implemented: '{rule}'"
        super().__init__(message)


class RouteDefinitionError(ConfigurationError):
    """Raised when a route is registered twice or has an unusable action."""


class ValidationError(VellumError):
    """
    Validation failed exception.

    Carries the error map (field -> failed rule names).
    """

    def __init__(
        self,
        errors: Optional[Dict[str, List[str]]] = None,
        message: str = "Validation failed",
    ) -> None:
        super().__init__(message)
        self.errors = errors or {}

    def __str__(self) -> str:
        if not self.errors:
            return "Validation failed"
        lines = [
            f"  - {field_name}: {', '.join(rules)}"
            for field_name, rules in self.errors.items()
        ]
        return "Validation failed:\n" + "\n".join(lines)

    def first(self, field_name: Optional[str] = None) -> Optional[str]:
        """Get the first failed rule, for one field or overall."""
        if field_name is not None:
            rules = self.errors.get(field_name, [])
            return rules[0] if rules else None
        for rules in self.errors.values():
            if rules:
                return rules[0]
        return None


class RouteNotFoundError(VellumError):
    """Raised when no route matches a method and path."""

    def __init__(self, method: str, path: str) -> None:
        self.method = method
        self.path = path
        super().__init__(f"No route for {method} {path}")


class TemplateError(VellumError):
    """Base exception for view rendering errors."""


class TemplateNotFoundError(TemplateError):
    """Raised when a view file cannot be resolved."""


class TemplateRenderError(TemplateError):
    """Raised when a view fails while being rendered."""
