"""
Domain: declarative record validation.

A schema maps a field name to a sequence of rules. Each rule is one check kind
(Required, Type, Length, Range, Pattern, Custom); `validate_data` interprets
the rules for every field and returns all failures at once.

Per-field evaluation order is fixed regardless of how rules are declared:
required -> type -> length -> range -> pattern -> custom.

- An absent value (missing, None or "") that is required fails with
  "<field> is required" and no further checks run for that field.
- An absent value that is not required skips every other check.
- Otherwise every remaining check runs; when several fail, the message of the
  last failing check is reported for the field.

Fields never short-circuit each other: one call surfaces every invalid field.

This module contains no I/O.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

RecordPredicate = Callable[[Any, Mapping[str, Any]], bool]
CustomCheck = Callable[[Any, Mapping[str, Any]], Any]

TYPE_KINDS = ("string", "number", "boolean", "object", "array")

_NUMBER_TYPES = (int, float, Decimal)
_SCALAR_TYPES = (str, bool, int, float, Decimal)


@dataclass(frozen=True, slots=True)
class Required:
    """
    Field must be present (not missing, None or "").

    `when` makes the requirement conditional: it receives the field value and
    the whole record, so a field can be required only when a sibling is absent.
    """

    when: Optional[RecordPredicate] = None

    def applies(self, value: Any, record: Mapping[str, Any]) -> bool:
        if self.when is None:
            return True
        return bool(self.when(value, record))


@dataclass(frozen=True, slots=True)
class Type:
    kind: str

    def __post_init__(self) -> None:
        if self.kind not in TYPE_KINDS:
            raise ValueError(f"Unknown type kind {self.kind!r}; expected one of {TYPE_KINDS}")


@dataclass(frozen=True, slots=True)
class Length:
    """Inclusive bounds on len() for strings and sequences."""

    min: Optional[int] = None
    max: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive numeric bounds."""

    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Pattern:
    regex: Union[str, "re.Pattern[str]"]
    message: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Custom:
    """`check(value, record)` returns True, or an error message."""

    check: CustomCheck


Rule = Union[Required, Type, Length, Range, Pattern, Custom]
Schema = Mapping[str, Sequence[Rule]]

_RULE_ORDER = (Required, Type, Length, Range, Pattern, Custom)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    errors: Dict[str, str] = field(default_factory=dict)


class ValidationError(ValueError):
    """Raised before any write when a record fails its schema."""

    def __init__(self, errors: Mapping[str, str], label: str = "Validation") -> None:
        self.errors: Dict[str, str] = dict(errors)
        super().__init__(f"{label} failed: {json.dumps(self.errors, sort_keys=True)}")


def is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _is_number(value: Any) -> bool:
    return isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite()
    return math.isfinite(value)


def _is_sized(value: Any) -> bool:
    return isinstance(value, (str, list, tuple))


def _matches_type(kind: str, value: Any) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "number":
        return _is_number(value)
    if kind == "boolean":
        return isinstance(value, bool)
    if kind == "array":
        return isinstance(value, (list, tuple))
    # "object": anything that is not a scalar (mappings, sequences, timestamps)
    return not isinstance(value, _SCALAR_TYPES)


def _rule_rank(rule: Rule) -> int:
    for rank, rule_type in enumerate(_RULE_ORDER):
        if isinstance(rule, rule_type):
            return rank
    raise TypeError(f"Unsupported rule: {rule!r}")


def _apply_rule(rule: Rule, name: str, value: Any, record: Mapping[str, Any]) -> Optional[str]:
    """Run one non-required rule. Returns an error message, or None on success."""

    if isinstance(rule, Type):
        if not _matches_type(rule.kind, value):
            article = "an" if rule.kind in ("array", "object") else "a"
            return f"{name} must be {article} {rule.kind}"
        return None

    if isinstance(rule, Length):
        if not _is_sized(value):
            return None
        message = None
        if rule.min is not None and len(value) < rule.min:
            message = f"{name} must be at least {rule.min} characters"
        if rule.max is not None and len(value) > rule.max:
            message = f"{name} cannot exceed {rule.max} characters"
        return message

    if isinstance(rule, Range):
        if not _is_number(value):
            return None
        if not _is_finite(value):
            return f"{name} must be a finite number"
        message = None
        if rule.min is not None and value < rule.min:
            message = f"{name} must be at least {rule.min}"
        if rule.max is not None and value > rule.max:
            message = f"{name} cannot exceed {rule.max}"
        return message

    if isinstance(rule, Pattern):
        if isinstance(value, str) and re.search(rule.regex, value) is None:
            return rule.message or f"{name} format is invalid"
        return None

    if isinstance(rule, Custom):
        outcome = rule.check(value, record)
        if outcome is True:
            return None
        if isinstance(outcome, str) and outcome:
            return outcome
        return f"{name} is invalid"

    raise TypeError(f"Unsupported rule: {rule!r}")


def _check_field(name: str, rules: Sequence[Rule], record: Mapping[str, Any]) -> Optional[str]:
    value = record.get(name)
    ordered = sorted(rules, key=_rule_rank)

    if is_absent(value):
        for rule in ordered:
            if isinstance(rule, Required) and rule.applies(value, record):
                return f"{name} is required"
        return None

    failure: Optional[str] = None
    for rule in ordered:
        if isinstance(rule, Required):
            continue
        message = _apply_rule(rule, name, value, record)
        if message is not None:
            failure = message
    return failure


def validate_data(record: Mapping[str, Any], schema: Schema) -> ValidationResult:
    """
    Validate a record against a schema.

    Args:
        record: Mapping of field name to value
        schema: Mapping of field name to its rules

    Returns:
        ValidationResult with is_valid and one error message per failing field

    Example:
        result = validate_data({"name": ""}, {"name": (Required(), Type("string"))})
        # result.is_valid is False
        # result.errors == {"name": "name is required"}
    """

    errors: Dict[str, str] = {}
    for name, rules in schema.items():
        message = _check_field(name, rules, record)
        if message is not None:
            errors[name] = message
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_or_raise(record: Mapping[str, Any], schema: Schema, *, label: str = "Validation") -> ValidationResult:
    """Validate and raise ValidationError when the record is invalid."""

    result = validate_data(record, schema)
    if not result.is_valid:
        raise ValidationError(result.errors, label=label)
    return result


__all__ = [
    "Required",
    "Type",
    "Length",
    "Range",
    "Pattern",
    "Custom",
    "Rule",
    "Schema",
    "ValidationResult",
    "ValidationError",
    "is_absent",
    "validate_data",
    "validate_or_raise",
]
