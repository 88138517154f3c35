"""
Vellum Logger
=============

Structured logging with pluggable handlers.

Example:
    logger = get_logger("vellum.validation")
    logger.info("Validation passed", fields=3)

    request_logger = logger.with_context(request_id="abc123")
    request_logger.warning("Validation failed", fields=["email"])
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional, TextIO


class LogLevel(IntEnum):
    """Log levels, aligned with the stdlib logging values."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


@dataclass
class LogRecord:
    """
    Structured log record.

    Attributes:
        level: Log level
        message: Log message
        timestamp: Record timestamp
        context: Additional key-value context
        exception: Exception info
        logger_name: Name of the emitting logger
    """

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    logger_name: str = "vellum"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data: Dict[str, Any] = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.name,
            "logger": self.logger_name,
            "message": self.message,
        }
        if self.context:
            data["context"] = self.context
        if self.exception is not None:
            data["exception"] = {
                "type": type(self.exception).__name__,
                "message": str(self.exception),
            }
        return data


class LogFormatter:
    """Base log formatter."""

    def format(self, record: LogRecord) -> str:
        raise NotImplementedError


class TextFormatter(LogFormatter):
    """
    Plain text formatter.

    Example output:
        2024-01-15 10:30:45 [WARNING] vellum.validation: Validation failed fields=['email']
    """

    COLORS = {
        LogLevel.DEBUG: "\033[36m",
        LogLevel.INFO: "\033[32m",
        LogLevel.WARNING: "\033[33m",
        LogLevel.ERROR: "\033[31m",
        LogLevel.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        date_format: str = "%Y-%m-%d %H:%M:%S",
        colors: bool = True,
    ) -> None:
        self.date_format = date_format
        self.colors = colors and sys.stderr.isatty()

    def format(self, record: LogRecord) -> str:
        level = record.level.name
        if self.colors:
            level = f"{self.COLORS.get(record.level, '')}{level}{self.RESET}"

        output = (
            f"{record.timestamp.strftime(self.date_format)} [{level}] "
            f"{record.logger_name}: {record.message}"
        )
        if record.context:
            output += " " + " ".join(f"{k}={v}" for k, v in record.context.items())

        if record.exception is not None:
            output += "\n" + "".join(
                traceback.format_exception(
                    type(record.exception),
                    record.exception,
                    record.exception.__traceback__,
                )
            )
        return output


class JsonFormatter(LogFormatter):
    """JSON lines formatter for log shipping."""

    def format(self, record: LogRecord) -> str:
        return json.dumps(record.to_dict(), default=str)


class LogHandler:
    """Base log handler."""

    def __init__(
        self,
        formatter: Optional[LogFormatter] = None,
        level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        self.formatter = formatter or TextFormatter()
        self.level = level

    def handle(self, record: LogRecord) -> None:
        if record.level >= self.level:
            self.emit(record)

    def emit(self, record: LogRecord) -> None:
        raise NotImplementedError


class StreamHandler(LogHandler):
    """Write formatted records to a stream (stderr by default)."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        formatter: Optional[LogFormatter] = None,
        level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        super().__init__(formatter, level)
        self.stream = stream

    def emit(self, record: LogRecord) -> None:
        stream = self.stream or sys.stderr
        stream.write(self.formatter.format(record) + "\n")
        stream.flush()


class MemoryHandler(LogHandler):
    """Keep records in a list. Handy in tests."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG) -> None:
        super().__init__(level=level)
        self.records: List[LogRecord] = []

    def emit(self, record: LogRecord) -> None:
        self.records.append(record)


class Logger:
    """
    Structured logger.

    Records are passed to the logger's own handlers, then to the handlers of
    its parent ("vellum.view" -> "vellum") unless propagate is False.

    Example:
        logger = Logger("myapp", handlers=[StreamHandler()])
        logger.info("Request received", path="/users", method="GET")
        logger.error("Render failed", exception=exc)
    """

    def __init__(
        self,
        name: str = "vellum",
        level: LogLevel = LogLevel.INFO,
        handlers: Optional[List[LogHandler]] = None,
        parent: Optional["Logger"] = None,
    ) -> None:
        self.name = name
        self.level = level
        self.handlers: List[LogHandler] = list(handlers) if handlers is not None else []
        self.parent = parent
        self.propagate = True
        self._context: Dict[str, Any] = {}

    def add_handler(self, handler: LogHandler) -> "Logger":
        """Add log handler."""
        self.handlers.append(handler)
        return self

    def remove_handler(self, handler: LogHandler) -> "Logger":
        """Remove log handler."""
        self.handlers.remove(handler)
        return self

    def with_context(self, **context: Any) -> "Logger":
        """Create a logger sharing handlers, with extra bound context."""
        bound = Logger(name=self.name, level=self.level, parent=self.parent)
        bound.handlers = self.handlers
        bound.propagate = self.propagate
        bound._context = {**self._context, **context}
        return bound

    def _log(
        self,
        level: LogLevel,
        message: str,
        exception: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        if level < self.level:
            return

        record = LogRecord(
            level=level,
            message=message,
            context={**self._context, **context},
            exception=exception,
            logger_name=self.name,
        )

        current: Optional[Logger] = self
        while current is not None:
            for handler in current.handlers:
                handler.handle(record)
            current = current.parent if current.propagate else None

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, **context)

    def error(
        self,
        message: str,
        exception: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        self._log(LogLevel.ERROR, message, exception, **context)

    def critical(
        self,
        message: str,
        exception: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        self._log(LogLevel.CRITICAL, message, exception, **context)


# Global logger registry
_loggers: Dict[str, Logger] = {}
_default_level: LogLevel = LogLevel.WARNING
_default_stream: Optional[TextIO] = None
_default_formatter: Optional[LogFormatter] = None


def _default_handler() -> LogHandler:
    return StreamHandler(stream=_default_stream, formatter=_default_formatter)


def get_logger(name: str = "vellum", level: Optional[LogLevel] = None) -> Logger:
    """
    Get or create a named logger.

    A top-level logger writes to stderr. A dotted logger starts with no
    handlers of its own and hands its records to its parent.
    """
    if name not in _loggers:
        parent_name, _, _ = name.rpartition(".")
        parent = get_logger(parent_name) if parent_name else None
        _loggers[name] = Logger(
            name=name,
            level=level if level is not None else _default_level,
            handlers=None if parent is not None else [_default_handler()],
            parent=parent,
        )
    return _loggers[name]


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    format: str = "text",
    stream: Optional[TextIO] = None,
    colors: bool = True,
) -> Logger:
    """
    Configure default logging for every Vellum logger.

    Top-level loggers get a fresh output handler. Handlers added to dotted
    loggers are left in place.

    Args:
        level: Minimum level
        format: "text" or "json"
        stream: Output stream (stderr by default)
        colors: Colored text output when attached to a terminal

    Returns:
        The root "vellum" logger
    """
    global _default_level, _default_stream, _default_formatter

    if format not in ("text", "json"):
        raise ValueError(f"Unknown log format: {format!r}")

    _default_formatter = JsonFormatter() if format == "json" else TextFormatter(colors=colors)
    _default_stream = stream
    _default_level = level

    root = get_logger("vellum")
    for logger in _loggers.values():
        logger.level = level
        if logger.parent is None:
            logger.handlers = [_default_handler()]

    return root
