"""
Vellum Validator
================

Core validation engine.

Applies pipe-delimited rule strings to a flat record and collects the names
of failed rules per field.

Example:
    validator = Validator(
        {"name": "Ann", "email": "bad", "age": "x"},
        {
            "name": "required|string",
            "email": "required|email",
            "age": "required|numeric",
        },
    )

    validator.validate()   # False
    validator.errors()     # {"email": ["email"], "age": ["numeric"]}
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from vellum.exceptions import RuleNotImplementedError, ValidationError
from vellum.utils.logger import get_logger
from vellum.validation.rules import DEFAULT_RULES, Rule, RuleToken, parse_rule_string

logger = get_logger("vellum.validation")


class Validator:
    """
    Single-pass validator over one record.

    Every rule of every field is evaluated, in the order of the rules
    mapping; a field that fails "required" still has its remaining rules
    checked. Errors are reset at the start of each validate() call.

    A validator belongs to one request. It cannot be copied.
    """

    # Rule name -> implementation. Subclasses may extend this mapping.
    RULES: Mapping[str, Rule] = DEFAULT_RULES

    __slots__ = ("_data", "_rules", "_errors", "_has_run")

    def __init__(self, data: Mapping[str, Any], rules: Mapping[str, str]) -> None:
        """
        Initialize validator. Nothing is evaluated yet.

        Args:
            data: Field name -> raw value
            rules: Field name -> pipe-delimited rule string
        """
        self._data = data
        self._rules = rules
        self._errors: Dict[str, List[str]] = {}
        self._has_run = False

    def __copy__(self) -> "Validator":
        raise TypeError("Validator instances are single-use and cannot be copied")

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Validator":
        raise TypeError("Validator instances are single-use and cannot be copied")

    @property
    def data(self) -> Mapping[str, Any]:
        return self._data

    @property
    def rules(self) -> Mapping[str, str]:
        return self._rules

    def validate(self) -> bool:
        """
        Validate the record against the rules.

        Returns:
            True if no rule failed

        Raises:
            RuleNotImplementedError: A rule string names an unknown rule,
                or passes arguments to a rule that takes none
        """
        self._errors = {}
        self._has_run = True

        for field_name, rule_string in self._rules.items():
            for token in parse_rule_string(rule_string):
                self._apply_rule(field_name, token)

        if self._errors:
            logger.debug(
                "Validation failed",
                fields=list(self._errors),
            )
            return False

        return True

    def _apply_rule(self, field_name: str, token: RuleToken) -> bool:
        rule = self.RULES.get(token.name)
        if rule is None or token.has_params:
            logger.error(
                "Validation rule not implemented",
                rule=token.raw,
                field=field_name,
            )
            raise RuleNotImplementedError(token.raw, field_name)

        passed = rule.validate(self._data.get(field_name), field_name, self._data)
        if not passed:
            self._errors.setdefault(field_name, []).append(rule.name)
        return passed

    def errors(self) -> Optional[Dict[str, List[str]]]:
        """Get the error map, or None when nothing failed."""
        if not self._errors:
            return None
        return {field_name: list(rules) for field_name, rules in self._errors.items()}

    def failed(self) -> bool:
        """Check whether the last validation pass recorded any failure."""
        return bool(self._errors)

    def validated(self) -> Dict[str, Any]:
        """
        Get the values of every ruled field that passed.

        Empty until validate() has run.
        """
        if not self._has_run:
            return {}

        return {
            field_name: self._data.get(field_name)
            for field_name in self._rules
            if field_name not in self._errors
        }

    def __repr__(self) -> str:
        return f"<Validator fields={list(self._rules)!r}>"


def validate_or_fail(
    data: Mapping[str, Any],
    rules: Mapping[str, str],
) -> Dict[str, Any]:
    """
    Validate data and raise on failure.

    Returns validated data if successful.

    Example:
        try:
            data = validate_or_fail(request.all(), {"email": "required|email"})
        except ValidationError as e:
            return {"errors": e.errors}
    """
    validator = Validator(data, rules)

    if not validator.validate():
        raise ValidationError(errors=validator.errors())

    return validator.validated()
