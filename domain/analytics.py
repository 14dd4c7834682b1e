"""
Domain: derived analytics over stored records (pure).

Low-stock and fast-moving are labels computed on demand from current
quantities and purchase history; they are never stored.

This module contains no I/O. Records are plain mappings as returned by the
repositories.
"""

from __future__ import annotations

import calendar
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple


def _quantity(record: Mapping[str, Any], field: str) -> Any:
    value = record.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def low_stock(items: Iterable[Mapping[str, Any]], quantity_field: str, threshold: int) -> List[Mapping[str, Any]]:
    """Items whose quantity is at or below the threshold. Items without a numeric quantity are ignored."""

    flagged = []
    for item in items:
        qty = _quantity(item, quantity_field)
        if qty is not None and qty <= threshold:
            flagged.append(item)
    return flagged


def sold_quantities(purchases: Iterable[Mapping[str, Any]]) -> Counter:
    """Total quantity sold per product id across all purchases."""

    sold: Counter = Counter()
    for purchase in purchases:
        for item in purchase.get("products") or []:
            product_id = item.get("product_id")
            qty = _quantity(item, "qty")
            if product_id and qty is not None:
                sold[product_id] += qty
    return sold


def freebie_redemptions(purchases: Iterable[Mapping[str, Any]]) -> Counter:
    """Number of purchases that redeemed each freebie id."""

    redeemed: Counter = Counter()
    for purchase in purchases:
        freebie_id = purchase.get("freebie_id")
        if freebie_id:
            redeemed[freebie_id] += 1
    return redeemed


def fast_moving(items: Iterable[Mapping[str, Any]], sold: Mapping[str, int], limit: int = 5) -> List[Dict[str, Any]]:
    """
    Rank items by quantity sold, highest first.

    Each returned item is a copy annotated with `qty_sold`. Ties keep the
    store order of `items`.
    """

    annotated = [{**item, "qty_sold": sold.get(item.get("id"), 0)} for item in items]
    annotated.sort(key=lambda entry: entry["qty_sold"], reverse=True)
    return annotated[:limit]


def customers_without_purchases(
    customers: Iterable[Mapping[str, Any]], purchases: Iterable[Mapping[str, Any]]
) -> List[Mapping[str, Any]]:
    buyer_ids = {purchase.get("customer_id") for purchase in purchases}
    return [customer for customer in customers if customer.get("id") not in buyer_ids]


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    Inclusive UTC bounds of a calendar month.

    Returns (first instant of the month, last microsecond of the month).
    """

    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        next_start = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        next_start = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, next_start - timedelta(microseconds=1)


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    return month_bounds(year, 1)[0], month_bounds(year, 12)[1]


def monthly_purchase_stats(purchases: Sequence[Mapping[str, Any]], year: int) -> List[Dict[str, Any]]:
    """
    Sales totals per calendar month of `year`.

    Purchases without a `purchased_at_utc` timestamp, or from another year,
    are ignored.
    """

    stats: List[Dict[str, Any]] = [
        {
            "month": month,
            "month_name": calendar.month_name[month],
            "total_sales": 0.0,
            "purchase_count": 0,
            "average_amount": 0.0,
        }
        for month in range(1, 13)
    ]

    for purchase in purchases:
        purchased_at = purchase.get("purchased_at_utc")
        if not isinstance(purchased_at, datetime) or purchased_at.year != year:
            continue
        bucket = stats[purchased_at.month - 1]
        bucket["total_sales"] += purchase.get("total_amount") or 0
        bucket["purchase_count"] += 1

    for bucket in stats:
        if bucket["purchase_count"]:
            bucket["average_amount"] = bucket["total_sales"] / bucket["purchase_count"]

    return stats


__all__ = [
    "low_stock",
    "sold_quantities",
    "freebie_redemptions",
    "fast_moving",
    "customers_without_purchases",
    "month_bounds",
    "year_bounds",
    "monthly_purchase_stats",
]
