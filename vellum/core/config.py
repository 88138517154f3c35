"""
Vellum Configuration Management
===============================

Layered configuration with dot-notation access.

Sources are merged by priority, highest wins:
1. Runtime values set with Config.set()
2. Environment variables (VELLUM_*)
3. Sources added with Config.add_source()
4. Built-in defaults

Example:
    config = Config({"app": {"name": "Shop", "url": "https://shop.test/"}})

    config.get("app.name")               # "Shop"
    config.get("app.debug", False)       # False
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, TypeVar, Union

from vellum.utils.helpers import deep_merge, get_nested, has_nested, set_nested, unflatten

T = TypeVar("T")

DEFAULTS: Dict[str, Any] = {
    "app": {
        "url": None,
    },
    "views": {
        "path": "resources/views",
        "extension": ".html",
    },
    "session": {
        "cookie": "vellum_session",
        "lifetime": 7200,
        "path": "/",
        "secure": True,
        "same_site": "lax",
    },
}

ENV_PREFIX = "VELLUM_"


@dataclass
class ConfigSource:
    """A named configuration layer."""

    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    priority: int = 0


class Config:
    """
    Application configuration container.

    Example:
        config = Config()
        config.set("app.debug", True)
        config.get("app.debug")              # True
        config.get("app.missing", "default") # "default"
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        *,
        load_env: bool = True,
    ) -> None:
        self._sources: List[ConfigSource] = [ConfigSource("defaults", _copy(DEFAULTS), priority=0)]
        self._merged: Dict[str, Any] = {}
        self._dirty = True

        if data:
            self.add_source("app", dict(data), priority=10)
        if load_env:
            self.load_env()

    def add_source(self, name: str, data: Dict[str, Any], priority: int = 10) -> None:
        """Add a configuration source."""
        self._sources.append(ConfigSource(name=name, data=data, priority=priority))
        self._dirty = True

    def load_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """
        Load overrides from VELLUM_* environment variables.

        VELLUM_APP_URL becomes "app.url"; VELLUM_SESSION_LIFETIME becomes
        "session.lifetime". The first underscore after the prefix separates
        the section from the key.
        """
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}

        for key, value in environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            section, _, name = key[len(ENV_PREFIX):].lower().partition("_")
            if not name:
                continue
            overrides[f"{section}.{name}"] = _parse_env_value(value)

        if overrides:
            self._sources = [s for s in self._sources if s.name != "env"]
            self.add_source("env", unflatten(overrides), priority=100)

    def _merge(self) -> Dict[str, Any]:
        if self._dirty:
            merged: Dict[str, Any] = {}
            for source in sorted(self._sources, key=lambda s: s.priority):
                deep_merge(merged, _copy(source.data))
            self._merged = merged
            self._dirty = False
        return self._merged

    def get(self, key: str, default: T = None) -> Union[Any, T]:
        """Get a value using dot notation."""
        return get_nested(self._merge(), key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        """Get a value as int, or the default if it does not convert."""
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get a value as bool; strings like "yes" and "on" are true."""
        value = self.get(key, default)
        if isinstance(value, str):
            return value.lower() in ("true", "yes", "1", "on")
        return bool(value)

    def set(self, key: str, value: Any) -> None:
        """Set a runtime value. Runtime values have the highest priority."""
        runtime = next((s for s in self._sources if s.name == "runtime"), None)
        if runtime is None:
            runtime = ConfigSource(name="runtime", priority=1000)
            self._sources.append(runtime)

        set_nested(runtime.data, key, value)
        self._dirty = True

    def has(self, key: str) -> bool:
        """Check if a key exists."""
        return has_nested(self._merge(), key)

    def all(self) -> Dict[str, Any]:
        """Get a copy of the merged configuration."""
        return _copy(self._merge())

    def section(self, prefix: str) -> Dict[str, Any]:
        """Get a copy of everything under a prefix."""
        value = self.get(prefix)
        return _copy(value) if isinstance(value, dict) else {}

    def __getitem__(self, key: str) -> Any:
        if not self.has(key):
            raise KeyError(key)
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.has(key)


def _copy(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: _copy(v) if isinstance(v, dict) else v for k, v in data.items()}


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable into bool, int, float, JSON or str."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False

    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass

    if value.startswith(("{", "[")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    return value


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def config(key: str, default: Any = None) -> Any:
    """Shortcut for global configuration access."""
    return get_config().get(key, default)
