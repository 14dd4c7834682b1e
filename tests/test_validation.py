"""
Tests for `domain/validation.py`.

Covers contract rules:
- Absent values (missing, None, "") that are required fail with "<field> is required" only.
- Absent values that are not required skip every other rule.
- Rules run in a fixed order; the last failing rule's message is reported.
- Every failing field is reported in one call.
- ValidationError carries the per-field error map.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.validation import (
    Custom,
    Length,
    Pattern,
    Range,
    Required,
    Type,
    ValidationError,
    validate_data,
    validate_or_raise,
)


@pytest.mark.parametrize("value", [None, ""])
def test_required_field_absent_reports_required_only(value) -> None:
    """Verify an absent required field reports only the required message."""

    schema = {"name": (Required(), Type("string"), Length(min=3), Pattern(r"^x"))}

    result = validate_data({"name": value}, schema)

    assert result.is_valid is False
    assert result.errors == {"name": "name is required"}


def test_missing_key_counts_as_absent() -> None:
    result = validate_data({}, {"name": (Required(),)})

    assert result.errors == {"name": "name is required"}


def test_optional_absent_field_skips_all_rules() -> None:
    """Verify a non-required absent field is never checked further."""

    calls = []

    def check(value, record):
        calls.append(value)
        return "never"

    schema = {"note": (Type("string"), Length(min=5), Custom(check))}

    assert validate_data({"note": ""}, schema).is_valid
    assert validate_data({}, schema).is_valid
    assert calls == []


def test_conditional_required_uses_whole_record() -> None:
    """Verify Required(when=...) can depend on sibling fields."""

    schema = {
        "phone": (Required(when=lambda value, record: not record.get("email")),),
        "email": (Required(when=lambda value, record: not record.get("phone")),),
    }

    assert validate_data({"phone": "9876543210"}, schema).is_valid
    assert validate_data({"email": "a@b.co"}, schema).is_valid
    assert validate_data({}, schema).errors == {
        "phone": "phone is required",
        "email": "email is required",
    }


@pytest.mark.parametrize(
    "kind, good, bad, message",
    [
        ("string", "x", 1, "v must be a string"),
        ("number", 1.5, "1.5", "v must be a number"),
        ("number", 2, True, "v must be a number"),
        ("boolean", False, "false", "v must be a boolean"),
        ("array", [1], {"a": 1}, "v must be an array"),
        ("object", {"a": 1}, "text", "v must be an object"),
    ],
)
def test_type_kinds(kind, good, bad, message) -> None:
    """Verify each type kind accepts its own values and rejects others."""

    schema = {"v": (Type(kind),)}

    assert validate_data({"v": good}, schema).is_valid
    assert validate_data({"v": bad}, schema).errors == {"v": message}


def test_object_kind_accepts_timestamps() -> None:
    schema = {"at": (Type("object"),)}

    assert validate_data({"at": datetime(2025, 1, 1, tzinfo=timezone.utc)}, schema).is_valid


def test_unknown_type_kind_rejected_at_declaration() -> None:
    with pytest.raises(ValueError):
        Type("date")


def test_length_messages() -> None:
    schema = {"name": (Length(min=2, max=4),)}

    assert validate_data({"name": "a"}, schema).errors == {"name": "name must be at least 2 characters"}
    assert validate_data({"name": "abcde"}, schema).errors == {"name": "name cannot exceed 4 characters"}
    assert validate_data({"name": "abc"}, schema).is_valid


def test_range_messages_and_inclusive_bounds() -> None:
    """Verify range bounds are inclusive."""

    schema = {"qty": (Range(min=0, max=10),)}

    assert validate_data({"qty": -1}, schema).errors == {"qty": "qty must be at least 0"}
    assert validate_data({"qty": 11}, schema).errors == {"qty": "qty cannot exceed 10"}
    assert validate_data({"qty": 0}, schema).is_valid
    assert validate_data({"qty": 10}, schema).is_valid


def test_zero_and_false_are_present_values() -> None:
    """Verify 0 and False satisfy Required."""

    schema = {"qty": (Required(),), "flag": (Required(),)}

    assert validate_data({"qty": 0, "flag": False}, schema).is_valid


def test_pattern_uses_custom_or_default_message() -> None:
    schema = {
        "code": (Pattern(r"^\d+$", message="code must be digits"),),
        "tag": (Pattern(r"^[a-z]+$"),),
    }

    result = validate_data({"code": "12a", "tag": "ABC"}, schema)

    assert result.errors == {"code": "code must be digits", "tag": "tag format is invalid"}


def test_custom_returns_message_or_generic() -> None:
    schema = {
        "a": (Custom(lambda value, record: "a is odd" if value % 2 else True),),
        "b": (Custom(lambda value, record: False),),
    }

    result = validate_data({"a": 3, "b": 1}, schema)

    assert result.errors == {"a": "a is odd", "b": "b is invalid"}


def test_last_failing_rule_wins_regardless_of_declaration_order() -> None:
    """Verify rules run in fixed order and the last failure is reported."""

    declared_backwards = {
        "pincode": (
            Pattern(r"^\d+$", message="Pincode must contain only numbers"),
            Length(min=5),
            Type("string"),
        )
    }

    result = validate_data({"pincode": "ab"}, declared_backwards)

    assert result.errors == {"pincode": "Pincode must contain only numbers"}


def test_custom_runs_after_type_failure() -> None:
    """Verify later rules still run after an earlier one fails."""

    schema = {"v": (Type("string"), Custom(lambda value, record: "custom failed"))}

    assert validate_data({"v": 5}, schema).errors == {"v": "custom failed"}


def test_all_failing_fields_reported_together() -> None:
    schema = {
        "name": (Required(),),
        "price": (Type("number"),),
        "qty": (Range(min=0),),
    }

    result = validate_data({"price": "x", "qty": -1}, schema)

    assert set(result.errors) == {"name", "price", "qty"}


def test_fields_not_in_schema_are_ignored() -> None:
    assert validate_data({"extra": object()}, {"name": (Type("string"),)}).is_valid


def test_validate_or_raise_carries_error_map() -> None:
    """Verify ValidationError exposes the errors and names the collection."""

    with pytest.raises(ValidationError) as excinfo:
        validate_or_raise({}, {"name": (Required(),)}, label="products validation")

    assert excinfo.value.errors == {"name": "name is required"}
    assert str(excinfo.value).startswith("products validation failed")
    assert isinstance(excinfo.value, ValueError)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN")])
def test_range_rejects_non_finite_numbers(value) -> None:
    """Verify NaN and infinities fail a range check instead of slipping past the comparisons."""

    schema = {"price": (Type("number"), Range(min=0))}

    assert validate_data({"price": value}, schema).errors == {"price": "price must be a finite number"}


def test_anchored_pattern_rejects_trailing_newline() -> None:
    schema = {"code": (Pattern(r"^\d+\Z"),)}

    assert validate_data({"code": "123"}, schema).is_valid
    assert validate_data({"code": "123\n"}, schema).errors == {"code": "code format is invalid"}
