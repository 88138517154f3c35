"""
Vellum Session Management
=========================

Session store with an explicit per-request lifecycle.

A SessionManager loads a Session at the start of a request and saves it at
the end. The Session itself is a plain object passed to handlers; keys use
dot notation to address nested data.

Example:
    manager = SessionManager(FileSessionBackend("/var/lib/app/sessions"))

    session = await manager.start(request)
    session.put("cart.items", [42])
    session.flash("status", "Saved!")
    await manager.save(session, response)
"""

from __future__ import annotations

import hashlib
import json
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from vellum.core.config import Config, get_config
from vellum.utils.helpers import forget_nested, get_nested, has_nested, set_nested
from vellum.utils.logger import get_logger

logger = get_logger("vellum.session")

_MISSING = object()


@dataclass
class SessionConfig:
    """Session configuration."""

    # Session cookie name
    cookie_name: str = "vellum_session"

    # Session lifetime (seconds)
    lifetime: int = 7200

    # Cookie attributes
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = True
    http_only: bool = True
    same_site: str = "lax"

    # Session ID length (bytes of entropy)
    id_length: int = 32

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "SessionConfig":
        """Build from the "session" section of the application config."""
        section = (config or get_config()).section("session")
        defaults = cls()
        return cls(
            cookie_name=section.get("cookie", defaults.cookie_name),
            lifetime=int(section.get("lifetime", defaults.lifetime)),
            path=section.get("path", defaults.path),
            domain=section.get("domain", defaults.domain),
            secure=bool(section.get("secure", defaults.secure)),
            http_only=bool(section.get("http_only", defaults.http_only)),
            same_site=section.get("same_site", defaults.same_site),
        )


class SessionBackend(ABC):
    """
    Abstract session backend.

    Implement this to store sessions in any storage system.
    """

    @abstractmethod
    async def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Read session data, or None if missing or expired."""
        ...

    @abstractmethod
    async def write(self, session_id: str, data: Dict[str, Any], lifetime: int) -> None:
        """Store session data for lifetime seconds."""
        ...

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Delete a session."""
        ...

    @abstractmethod
    async def gc(self) -> int:
        """Remove expired sessions. Returns the count removed."""
        ...


class MemorySessionBackend(SessionBackend):
    """
    In-memory session backend.

    Suitable for development and tests. Sessions are lost on restart.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Dict[str, Any]] = {}
        self._expires: Dict[str, float] = {}

    async def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        expires = self._expires.get(session_id)
        if expires is not None and time.time() > expires:
            await self.destroy(session_id)
            return None
        data = self._sessions.get(session_id)
        return json.loads(json.dumps(data)) if data is not None else None

    async def write(self, session_id: str, data: Dict[str, Any], lifetime: int) -> None:
        # Stored data never aliases the live session dict.
        self._sessions[session_id] = json.loads(json.dumps(data))
        self._expires[session_id] = time.time() + lifetime

    async def destroy(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._expires.pop(session_id, None)

    async def gc(self) -> int:
        now = time.time()
        expired = [sid for sid, exp in self._expires.items() if now > exp]
        for sid in expired:
            await self.destroy(sid)
        return len(expired)


class FileSessionBackend(SessionBackend):
    """
    File-based session backend.

    Stores each session as a JSON file named by the hashed session ID.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)

    def _get_path(self, session_id: str) -> Path:
        filename = hashlib.sha256(session_id.encode()).hexdigest()
        return self.path / f"{filename}.json"

    async def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        path = self._get_path(session_id)
        if not path.exists():
            return None

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            payload = None

        if not isinstance(payload, dict) or not isinstance(payload.get("data", {}), dict):
            logger.warning("Discarding corrupt session file", path=str(path))
            path.unlink(missing_ok=True)
            return None

        if time.time() > payload.get("expires", 0):
            await self.destroy(session_id)
            return None

        return payload.get("data", {})

    async def write(self, session_id: str, data: Dict[str, Any], lifetime: int) -> None:
        payload = {"expires": time.time() + lifetime, "data": data}
        self._get_path(session_id).write_text(json.dumps(payload), encoding="utf-8")

    async def destroy(self, session_id: str) -> None:
        self._get_path(session_id).unlink(missing_ok=True)

    async def gc(self) -> int:
        now = time.time()
        removed = 0
        for path in self.path.glob("*.json"):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                payload = None
            expires = payload.get("expires", 0) if isinstance(payload, dict) else 0
            if now > expires:
                path.unlink(missing_ok=True)
                removed += 1
        return removed


class Session:
    """
    Session data for one request.

    Keys use dot notation: "user.name" reads session["user"]["name"].
    Mutating methods return the session so calls can be chained.

    Example:
        session.put("user.id", 123).put("user.name", "Ann")
        session.get("user.name")            # "Ann"
        session.pull("user.name")           # "Ann", and removes it
    """

    FLASH_KEY = "flash"

    def __init__(
        self,
        session_id: str,
        data: Optional[Dict[str, Any]] = None,
        is_new: bool = False,
    ) -> None:
        self._id = session_id
        self._data: Dict[str, Any] = data if data is not None else {}
        self._is_new = is_new
        self._modified = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def is_modified(self) -> bool:
        return self._modified

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key."""
        return get_nested(self._data, key, default)

    def put(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Session":
        """
        Set a value by dotted key, or merge a mapping of top-level keys.

        Example:
            session.put("user.id", 5)
            session.put({"locale": "en", "theme": "dark"})
        """
        if isinstance(key, Mapping):
            self._data.update(key)
        else:
            set_nested(self._data, key, value)
        self._modified = True
        return self

    def has(self, key: str) -> bool:
        """Check that a dotted key exists and is not None."""
        return get_nested(self._data, key) is not None

    def exists(self, key: str) -> bool:
        """Check that a dotted key exists, even if its value is None."""
        return has_nested(self._data, key)

    def pull(self, key: str, default: Any = None) -> Any:
        """Get a value and remove it."""
        value = get_nested(self._data, key, _MISSING)
        if value is _MISSING:
            return default
        self.forget(key)
        return value

    def forget(self, keys: Union[str, Iterable[str]]) -> "Session":
        """Remove one dotted key or several."""
        for key in [keys] if isinstance(keys, str) else keys:
            if forget_nested(self._data, key):
                self._modified = True
        return self

    def flash(self, key: str, value: Any) -> "Session":
        """Store a value under "flash.<key>"; read it back with pull()."""
        return self.put(f"{self.FLASH_KEY}.{key}", value)

    def clear(self) -> "Session":
        """Remove all session data."""
        self._data.clear()
        self._modified = True
        return self

    def all(self) -> Dict[str, Any]:
        """Get a shallow copy of all session data."""
        return dict(self._data)

    def regenerate(self, new_id: str) -> None:
        """Switch to a new ID, keeping the data."""
        self._id = new_id
        self._modified = True

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        return f"<Session {self._id[:8]}... keys={list(self._data)!r}>"


class SessionManager:
    """
    Loads and saves sessions around a request.

    Example:
        manager = SessionManager()
        session = await manager.start(request)
        ...
        await manager.save(session, response)
    """

    def __init__(
        self,
        backend: Optional[SessionBackend] = None,
        config: Optional[SessionConfig] = None,
    ) -> None:
        self.backend = backend or MemorySessionBackend()
        self.config = config or SessionConfig.from_config()

    async def start(self, request: Any) -> Session:
        """
        Resume the session named by the request cookie, or create one.

        Args:
            request: Any object with a `cookies` mapping
        """
        session_id = getattr(request, "cookies", {}).get(self.config.cookie_name)

        if session_id:
            data = await self.backend.read(session_id)
            if data is not None:
                return Session(session_id, data, is_new=False)
            logger.debug("Session not found, starting a new one")

        return Session(self._generate_id(), {"_created": time.time()}, is_new=True)

    async def save(self, session: Session, response: Any) -> None:
        """Persist a new or modified session and set its cookie."""
        if not (session.is_modified or session.is_new):
            return

        await self.backend.write(session.id, session.all(), self.config.lifetime)
        self._set_cookie(response, session.id)

    async def regenerate(self, session: Session) -> str:
        """
        Move the session to a fresh ID.

        Call after login to prevent session fixation.
        """
        await self.backend.destroy(session.id)
        new_id = self._generate_id()
        session.regenerate(new_id)
        return new_id

    async def destroy(self, session: Session, response: Any) -> None:
        await self.backend.destroy(session.id)
        session.clear()
        if hasattr(response, "delete_cookie"):
            response.delete_cookie(self.config.cookie_name, path=self.config.path)

    async def gc(self) -> int:
        return await self.backend.gc()

    def _generate_id(self) -> str:
        return secrets.token_urlsafe(self.config.id_length)

    def _set_cookie(self, response: Any, session_id: str) -> None:
        if not hasattr(response, "set_cookie"):
            return

        options: Dict[str, Any] = {
            "max_age": self.config.lifetime,
            "path": self.config.path,
            "secure": self.config.secure,
            "httponly": self.config.http_only,
            "samesite": self.config.same_site,
        }
        if self.config.domain:
            options["domain"] = self.config.domain

        response.set_cookie(self.config.cookie_name, session_id, **options)
