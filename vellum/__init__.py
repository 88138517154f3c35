"""
Vellum - A Small MVC Toolkit
============================

Declarative input validation with the web glue around it.

Features:
---------
- Pipe-delimited validation rules ("required|email")
- Immutable request wrapper over ASGI scopes
- Session store with dotted keys and explicit load/save
- Method + pattern route table with controller dispatch
- URL generation from config and request
- HTML views that return render results instead of raising

Quick Start:
    from vellum import Validator

    validator = Validator({"email": "bad"}, {"email": "required|email"})
    validator.validate()   # False
    validator.errors()     # {"email": ["email"]}
"""

from __future__ import annotations

__version__ = "0.3.0"
__license__ = "MIT"

from typing import TYPE_CHECKING

# Core imports (always available)
from vellum.core.config import Config
from vellum.exceptions import (
    ConfigurationError,
    RuleNotImplementedError,
    ValidationError,
    VellumError,
)
from vellum.validation.validator import Validator, validate_or_fail

if TYPE_CHECKING:
    from vellum.http.request import Request
    from vellum.http.session import Session, SessionManager
    from vellum.routing.router import Route, Router
    from vellum.support.url import URL
    from vellum.view import View


def __getattr__(name: str):
    """Lazy loading of the web components."""
    _imports = {
        "Request": "vellum.http.request",
        "Session": "vellum.http.session",
        "SessionManager": "vellum.http.session",
        "Route": "vellum.routing.router",
        "Router": "vellum.routing.router",
        "URL": "vellum.support.url",
        "View": "vellum.view",
    }

    if name in _imports:
        import importlib
        module = importlib.import_module(_imports[name])
        return getattr(module, name)

    raise AttributeError(f"module 'vellum' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Core
    "Config",
    "Validator",
    "validate_or_fail",
    # Errors
    "VellumError",
    "ConfigurationError",
    "RuleNotImplementedError",
    "ValidationError",
    # Web (lazy)
    "Request",
    "Session",
    "SessionManager",
    "Route",
    "Router",
    "URL",
    "View",
]
