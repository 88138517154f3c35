"""
Vellum Helpers
==============

Dotted-path access over nested mappings.

A key such as "user.profile.name" is treated as a chain of segments.
Reads walk the chain and fall back to a default on any missing segment or
type mismatch. Writes create intermediate dicts as needed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, MutableMapping, Sequence, Union


_MISSING = object()


def _segments(path: str, separator: str) -> List[str]:
    return path.split(separator) if path else []


def _step(current: Any, key: str) -> Any:
    """Resolve one segment, or return _MISSING."""
    if isinstance(current, Mapping):
        return current.get(key, _MISSING)
    if (
        isinstance(current, Sequence)
        and not isinstance(current, (str, bytes))
        and key.isdigit()
    ):
        index = int(key)
        return current[index] if index < len(current) else _MISSING
    return _MISSING


def get_nested(
    obj: Union[Mapping, Sequence, Any],
    path: str,
    default: Any = None,
    separator: str = ".",
) -> Any:
    """
    Get nested value from dict/list using dot notation.

    Args:
        obj: Source object
        path: Dot-separated path
        default: Default if not found
        separator: Path separator

    Returns:
        Value at path or default

    Example:
        >>> get_nested({"a": {"b": 1}}, "a.b")
        1
        >>> get_nested({"a": "text"}, "a.b", "none")
        'none'
    """
    current = obj

    for key in _segments(path, separator):
        current = _step(current, key)
        if current is _MISSING:
            return default

    return current


def has_nested(obj: Any, path: str, separator: str = ".") -> bool:
    """Check whether every segment of path resolves."""
    return get_nested(obj, path, _MISSING, separator) is not _MISSING


def set_nested(
    obj: MutableMapping,
    path: str,
    value: Any,
    separator: str = ".",
) -> MutableMapping:
    """
    Set nested value in dict using dot notation.

    Intermediate values that are not dicts are replaced by empty dicts.

    Example:
        >>> set_nested({}, "a.b.c", 1)
        {'a': {'b': {'c': 1}}}
    """
    keys = _segments(path, separator)
    if not keys:
        raise ValueError("Cannot set a value at an empty path")

    current = obj
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, MutableMapping):
            child = {}
            current[key] = child
        current = child

    current[keys[-1]] = value
    return obj


def forget_nested(
    obj: MutableMapping,
    path: str,
    separator: str = ".",
) -> bool:
    """
    Remove the value at path.

    Returns:
        True if something was removed
    """
    keys = _segments(path, separator)
    if not keys:
        return False

    parent = get_nested(obj, separator.join(keys[:-1]), None, separator) if len(keys) > 1 else obj
    if isinstance(parent, MutableMapping) and keys[-1] in parent:
        del parent[keys[-1]]
        return True
    return False


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge override into base, in place."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, Mapping):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def unflatten(flat: Mapping[str, Any], separator: str = ".") -> Dict[str, Any]:
    """
    Convert flat dotted keys to a nested dict.

    Example:
        >>> unflatten({"app.url": "/"})
        {'app': {'url': '/'}}
    """
    result: Dict[str, Any] = {}
    for key, value in flat.items():
        set_nested(result, key, value, separator)
    return result
