"""
Vellum Utils Package
====================

Nested-key helpers and structured logging.
"""

from __future__ import annotations

from vellum.utils.helpers import (
    deep_merge,
    forget_nested,
    get_nested,
    has_nested,
    set_nested,
    unflatten,
)
from vellum.utils.logger import (
    JsonFormatter,
    LogLevel,
    Logger,
    MemoryHandler,
    StreamHandler,
    TextFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    # Nested access
    "get_nested",
    "has_nested",
    "set_nested",
    "forget_nested",
    "deep_merge",
    "unflatten",
    # Logging
    "Logger",
    "LogLevel",
    "StreamHandler",
    "MemoryHandler",
    "TextFormatter",
    "JsonFormatter",
    "get_logger",
    "configure_logging",
]
