"""
Vellum HTTP Package
===================

Request wrapper and session store.
"""

from vellum.http.request import Headers, Request
from vellum.http.session import (
    FileSessionBackend,
    MemorySessionBackend,
    Session,
    SessionBackend,
    SessionConfig,
    SessionManager,
)

__all__ = [
    "Request",
    "Headers",
    "Session",
    "SessionConfig",
    "SessionManager",
    "SessionBackend",
    "MemorySessionBackend",
    "FileSessionBackend",
]
