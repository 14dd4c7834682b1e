"""
Domain: record schemas for every collection.

Schemas are data: a mapping of field name to a tuple of rules interpreted by
`domain.validation.validate_data`. Custom checks are used only where a rule
depends on logic (date parsing, whole numbers, cross-field consistency).

Canonical customer shape: name, phone and/or email, postal address with an
optional pincode, and the demographic attributes. A customer needs at least
one contact identifier (phone or email).
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from .validation import Custom, Length, Pattern, Range, Required, Schema, Type, is_absent

# Amounts are floats; compare with a tolerance that only absorbs binary rounding.
AMOUNT_TOLERANCE = 1e-9

PHONE_PATTERN = r"^\+?\d{7,15}\Z"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+\Z"
PINCODE_PATTERN = r"^\d+\Z"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def amounts_equal(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=0.0, abs_tol=AMOUNT_TOLERANCE)


def line_subtotal(item: Mapping[str, Any]) -> Optional[float]:
    """Supplied subtotal, or price x qty when absent. None when neither can be determined."""

    subtotal = item.get("subtotal")
    if _is_number(subtotal):
        return subtotal
    price, qty = item.get("price"), item.get("qty")
    if _is_number(price) and _is_number(qty):
        return price * qty
    return None


def _iso_date(value: Any, record: Mapping[str, Any]) -> Any:
    if not isinstance(value, str):
        return True
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "Invalid date format"
    return True


def _whole_number(name: str) -> Callable[[Any, Mapping[str, Any]], Any]:
    def check(value: Any, record: Mapping[str, Any]) -> Any:
        if isinstance(value, float) and not value.is_integer():
            return f"{name} must be a whole number"
        return True

    return check


def _timestamp(name: str) -> Callable[[Any, Mapping[str, Any]], Any]:
    def check(value: Any, record: Mapping[str, Any]) -> Any:
        return isinstance(value, datetime) or f"{name} must be a timestamp"

    return check


def _blend_entries(value: Any, record: Mapping[str, Any]) -> Any:
    if not isinstance(value, (list, tuple)):
        return True
    for entry in value:
        if not isinstance(entry, str) or not entry:
            return "blend must list product ids"
    return True


def _non_empty_products(value: Any, record: Mapping[str, Any]) -> Any:
    return (isinstance(value, (list, tuple)) and len(value) > 0) or "At least one product is required"


def _inline_customer(value: Any, record: Mapping[str, Any]) -> Any:
    return isinstance(value, Mapping) or "customer must be an object"


def _customer_not_both(value: Any, record: Mapping[str, Any]) -> Any:
    if not is_absent(record.get("customer")):
        return "Provide either customer_id or customer, not both"
    return True


def _subtotal_matches(value: Any, record: Mapping[str, Any]) -> Any:
    price, qty = record.get("price"), record.get("qty")
    if not (_is_number(value) and _is_number(price) and _is_number(qty)):
        return True
    expected = price * qty
    if amounts_equal(value, expected):
        return True
    return f"subtotal {value:.2f} must equal price x qty ({expected:.2f})"


def _total_matches(value: Any, record: Mapping[str, Any]) -> Any:
    products = record.get("products")
    if not _is_number(value) or not isinstance(products, (list, tuple)):
        return True

    expected = 0.0
    for item in products:
        subtotal = line_subtotal(item) if isinstance(item, Mapping) else None
        if subtotal is None:
            # malformed line items are reported by the line item schema
            return True
        expected += subtotal

    if amounts_equal(value, expected):
        return True
    return f"total_amount {value:.2f} does not match the sum of line item subtotals {expected:.2f}"


_TIMESTAMPS: Schema = {
    "created_at_utc": (Type("object"),),
    "updated_at_utc": (Type("object"),),
}


CUSTOMER_SCHEMA: Schema = {
    "first_name": (Required(), Type("string"), Length(min=1, max=50)),
    "last_name": (Required(), Type("string"), Length(min=1, max=50)),
    "phone": (
        Required(when=lambda value, record: is_absent(record.get("email"))),
        Type("string"),
        Pattern(PHONE_PATTERN, message="phone must contain 7 to 15 digits"),
    ),
    "email": (
        Required(when=lambda value, record: is_absent(record.get("phone"))),
        Type("string"),
        Length(max=254),
        Pattern(EMAIL_PATTERN),
    ),
    "street": (Type("string"), Length(max=200)),
    "city": (Type("string"), Length(max=100)),
    "state": (Type("string"), Length(max=100)),
    "pincode": (
        Type("string"),
        Length(min=5, max=10),
        Pattern(PINCODE_PATTERN, message="Pincode must contain only numbers"),
    ),
    "dob": (Type("string"), Custom(_iso_date)),
    "anniversary": (Type("string"), Custom(_iso_date)),
    "skin_type": (Type("string"), Length(max=50)),
    "hair_type": (Type("string"), Length(max=50)),
    "for_own_consumption": (Type("boolean"),),
    **_TIMESTAMPS,
}

PRODUCT_SCHEMA: Schema = {
    "name": (Required(), Type("string"), Length(min=1, max=100)),
    "variant": (Type("string"), Length(max=100)),
    "category": (Required(), Type("string"), Length(min=1, max=100)),
    "price": (Required(), Type("number"), Range(min=0)),
    "qty": (Required(), Type("number"), Range(min=0), Custom(_whole_number("qty"))),
    **_TIMESTAMPS,
}

FREEBIE_SCHEMA: Schema = {
    "name": (Required(), Type("string"), Length(min=1, max=100)),
    "description": (Type("string"), Length(max=500)),
    "blend": (Type("array"), Custom(_blend_entries)),
    "value": (Type("number"), Range(min=0)),
    "available_qty": (
        Required(),
        Type("number"),
        Range(min=0),
        Custom(_whole_number("available_qty")),
    ),
    **_TIMESTAMPS,
}

LINE_ITEM_SCHEMA: Schema = {
    "product_id": (Required(), Type("string"), Length(min=1)),
    "name": (Type("string"), Length(max=100)),
    "variant": (Type("string"), Length(max=100)),
    "price": (Required(), Type("number"), Range(min=0)),
    "qty": (Required(), Type("number"), Range(min=1), Custom(_whole_number("qty"))),
    "subtotal": (Type("number"), Range(min=0), Custom(_subtotal_matches)),
}

PURCHASE_SCHEMA: Schema = {
    "customer_id": (
        Required(when=lambda value, record: is_absent(record.get("customer"))),
        Type("string"),
        Custom(_customer_not_both),
    ),
    "customer": (Type("object"), Custom(_inline_customer)),
    "products": (Required(), Type("array"), Custom(_non_empty_products)),
    "total_amount": (Required(), Type("number"), Range(min=0), Custom(_total_matches)),
    "freebie_id": (Type("string"),),
    "purchased_at_utc": (Required(), Type("object"), Custom(_timestamp("purchased_at_utc"))),
    **_TIMESTAMPS,
}

FREEBIE_SENT_SCHEMA: Schema = {
    "customer_id": (Required(), Type("string")),
    "freebie_id": (Required(), Type("string")),
    "purchase_id": (Required(), Type("string")),
    "freebie_name": (Required(), Type("string")),
    "sent_at_utc": (Required(), Type("object"), Custom(_timestamp("sent_at_utc"))),
    "created_at_utc": (Type("object"),),
}


__all__ = [
    "CUSTOMER_SCHEMA",
    "PRODUCT_SCHEMA",
    "FREEBIE_SCHEMA",
    "LINE_ITEM_SCHEMA",
    "PURCHASE_SCHEMA",
    "FREEBIE_SENT_SCHEMA",
    "amounts_equal",
    "line_subtotal",
]
