"""
Vellum Validation Rules
=======================

The closed set of built-in rules and the rule-string parser.

Rule strings join rule tokens with "|":

    "required|string"
    "required|email"

A token may carry arguments ("max:255"). The syntax is recognized, but no
built-in rule takes arguments, so the validator rejects such tokens.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from numbers import Real
from typing import Any, Dict, List, Mapping, Pattern, Tuple


class Rule(ABC):
    """
    Abstract validation rule.

    `name` is the identifier used in rule strings and recorded in the
    error map when the rule fails.

    Example:
        class Positive(Rule):
            name = "positive"

            def validate(self, value, field, data):
                return isinstance(value, (int, float)) and value > 0
    """

    name: str = ""

    @abstractmethod
    def validate(self, value: Any, field: str, data: Mapping[str, Any]) -> bool:
        """
        Validate the value.

        Args:
            value: Value to validate, None when the field is absent
            field: Field name
            data: Full record being validated

        Returns:
            True if valid, False otherwise
        """
        ...

    def __call__(self, value: Any, field: str, data: Mapping[str, Any]) -> bool:
        return self.validate(value, field, data)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


class Required(Rule):
    """
    Require a truthy value.

    Absent, "", "0", 0, 0.0, False and empty containers all fail.
    """

    name = "required"

    def validate(self, value: Any, field: str, data: Mapping[str, Any]) -> bool:
        if value is None:
            return False
        if isinstance(value, str):
            return value not in ("", "0")
        return bool(value)


class String(Rule):
    """Value must be present and a str. The empty string passes."""

    name = "string"

    def validate(self, value: Any, field: str, data: Mapping[str, Any]) -> bool:
        return isinstance(value, str)


class Numeric(Rule):
    """Value must be a real number or a decimal numeric string."""

    name = "numeric"

    # Optional surrounding whitespace, sign, digits with optional fraction,
    # optional exponent. No hex, no underscores, no inf/nan.
    _pattern: Pattern = re.compile(
        r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*",
        re.ASCII,
    )

    def validate(self, value: Any, field: str, data: Mapping[str, Any]) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, (Real, Decimal)):
            return True
        if isinstance(value, str):
            return bool(self._pattern.fullmatch(value))
        return False


class Email(Rule):
    """Validate email format."""

    name = "email"

    _pattern: Pattern = re.compile(
        r"[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-zA-Z0-9!#$%&'*+/=?^_`{|}~-]+)*"
        r"@(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}"
    )

    def validate(self, value: Any, field: str, data: Mapping[str, Any]) -> bool:
        if not isinstance(value, str):
            return False
        return bool(self._pattern.fullmatch(value))


def build_registry(*rules: Rule) -> Dict[str, Rule]:
    """Index rules by name."""
    return {rule.name: rule for rule in rules}


DEFAULT_RULES: Dict[str, Rule] = build_registry(
    Required(),
    String(),
    Numeric(),
    Email(),
)


@dataclass(frozen=True)
class RuleToken:
    """One parsed token of a rule string."""

    raw: str
    name: str
    params: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_params(self) -> bool:
        return bool(self.params)


def parse_rule_token(token: str) -> RuleToken:
    """
    Parse a single token.

    Example:
        >>> parse_rule_token("max:255")
        RuleToken(raw='max:255', name='max', params=('255',))
    """
    token = token.strip()
    if ":" in token:
        name, params = token.split(":", 1)
        return RuleToken(raw=token, name=name, params=tuple(params.split(",")))
    return RuleToken(raw=token, name=token)


def parse_rule_string(rules: str) -> List[RuleToken]:
    """
    Parse a pipe-separated rule string, in order.

    Blank tokens are skipped.
    """
    return [
        parse_rule_token(part)
        for part in rules.split("|")
        if part.strip()
    ]
