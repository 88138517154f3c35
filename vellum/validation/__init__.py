"""
Vellum Validation System
========================

Declarative validation of flat request data.

Features:
- Pipe-delimited rule strings ("required|email")
- Closed set of built-in rules: required, string, numeric, email
- Per-field error maps of failed rule names
- Unknown rules fail loudly as configuration errors
"""

from vellum.exceptions import RuleNotImplementedError, ValidationError
from vellum.validation.rules import (
    DEFAULT_RULES,
    Email,
    Numeric,
    Required,
    Rule,
    RuleToken,
    String,
    build_registry,
    parse_rule_string,
    parse_rule_token,
)
from vellum.validation.validator import Validator, validate_or_fail

__all__ = [
    # Core
    "Validator",
    "ValidationError",
    "RuleNotImplementedError",
    "validate_or_fail",
    # Rules
    "Rule",
    "Required",
    "String",
    "Numeric",
    "Email",
    "DEFAULT_RULES",
    "build_registry",
    # Parsing
    "RuleToken",
    "parse_rule_string",
    "parse_rule_token",
]
