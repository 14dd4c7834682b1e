"""
Tests for `domain/analytics.py` and `services/analytics_service.py`.

Covers contract rules:
- Low stock is quantity at or below the threshold.
- Fast-moving items are ranked by quantity sold, ties in store order.
- Month bounds are inclusive UTC instants.
- Monthly stats always cover twelve months.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from domain.analytics import (
    customers_without_purchases,
    fast_moving,
    freebie_redemptions,
    low_stock,
    month_bounds,
    monthly_purchase_stats,
    sold_quantities,
    year_bounds,
)


PURCHASES = [
    {
        "customer_id": "c1",
        "products": [{"product_id": "p1", "qty": 2}, {"product_id": "p2", "qty": 1}],
        "freebie_id": "f1",
        "total_amount": 250,
        "purchased_at_utc": datetime(2025, 2, 3, tzinfo=timezone.utc),
    },
    {
        "customer_id": "c1",
        "products": [{"product_id": "p2", "qty": 4}],
        "freebie_id": None,
        "total_amount": 200,
        "purchased_at_utc": datetime(2025, 2, 20, tzinfo=timezone.utc),
    },
    {
        "customer_id": "c2",
        "products": [{"product_id": "p1", "qty": 1}],
        "freebie_id": "f1",
        "total_amount": 100,
        "purchased_at_utc": datetime(2024, 12, 31, tzinfo=timezone.utc),
    },
]


def test_low_stock_threshold_inclusive() -> None:
    items = [{"id": "a", "qty": 5}, {"id": "b", "qty": 6}, {"id": "c", "qty": 0}, {"id": "d"}]

    assert [i["id"] for i in low_stock(items, "qty", 5)] == ["a", "c"]


def test_sold_quantities_and_redemptions() -> None:
    assert sold_quantities(PURCHASES) == {"p1": 3, "p2": 5}
    assert freebie_redemptions(PURCHASES) == {"f1": 2}


def test_fast_moving_ranks_by_quantity_sold() -> None:
    """Verify ranking is descending, limited, and ties keep input order."""

    products = [{"id": "p0"}, {"id": "p1"}, {"id": "p2"}, {"id": "p3"}]

    ranked = fast_moving(products, sold_quantities(PURCHASES), limit=3)

    assert [(p["id"], p["qty_sold"]) for p in ranked] == [("p2", 5), ("p1", 3), ("p0", 0)]
    assert "qty_sold" not in products[0]


def test_customers_without_purchases() -> None:
    customers = [{"id": "c1"}, {"id": "c2"}, {"id": "c3"}]

    assert customers_without_purchases(customers, PURCHASES) == [{"id": "c3"}]


def test_month_bounds() -> None:
    start, end = month_bounds(2024, 2)

    assert start == datetime(2024, 2, 1, tzinfo=timezone.utc)
    assert end == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc)
    assert month_bounds(2024, 12)[1] == datetime(2024, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
    assert year_bounds(2025) == (
        datetime(2025, 1, 1, tzinfo=timezone.utc),
        datetime(2025, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc),
    )


def test_month_bounds_rejects_bad_month() -> None:
    with pytest.raises(ValueError):
        month_bounds(2025, 13)


def test_monthly_purchase_stats() -> None:
    stats = monthly_purchase_stats(PURCHASES, 2025)

    assert len(stats) == 12
    assert stats[1] == {
        "month": 2,
        "month_name": "February",
        "total_sales": 450,
        "purchase_count": 2,
        "average_amount": 225,
    }
    assert stats[11]["purchase_count"] == 0
    assert stats[11]["average_amount"] == 0


def test_inventory_report(services) -> None:
    """Verify the report combines stock levels, sales and customer activity."""

    rose = services.products.create({"name": "Rose Soap", "category": "Soaps", "price": 100, "qty": 20})
    gel = services.products.create({"name": "Aloe Gel", "category": "Gels", "price": 50, "qty": 9})
    kit = services.freebies.create({"name": "Travel Kit", "available_qty": 2})
    asha = services.customers.create({"first_name": "Asha", "last_name": "Rao", "phone": "9876543210"})
    ravi = services.customers.create({"first_name": "Ravi", "last_name": "Kumar", "phone": "9123456780"})
    services.purchases.create_purchase(
        {
            "customer_id": asha["id"],
            "products": [{"product_id": gel["id"], "price": 50, "qty": 3}],
            "freebie_id": kit["id"],
        }
    )

    report = services.analytics.inventory_report(threshold=10, limit=2)

    assert report.threshold == 10
    assert [p["id"] for p in report.low_stock_products] == [gel["id"]]
    assert [f["id"] for f in report.low_stock_freebies] == [kit["id"]]
    assert [(p["id"], p["qty_sold"]) for p in report.fast_moving_products] == [(gel["id"], 3), (rose["id"], 0)]
    assert [(f["id"], f["qty_sold"]) for f in report.fast_moving_freebies] == [(kit["id"], 1)]
    assert [c["id"] for c in report.customers_without_purchases] == [ravi["id"]]


def test_dashboard_stats(services) -> None:
    gel = services.products.create({"name": "Aloe Gel", "category": "Gels", "price": 50, "qty": 9})
    services.products.create({"name": "Rose Soap", "category": "Soaps", "price": 100, "qty": 20})
    kit = services.freebies.create({"name": "Travel Kit", "available_qty": 1})
    asha = services.customers.create({"first_name": "Asha", "last_name": "Rao", "phone": "9876543210"})
    services.purchases.create_purchase(
        {
            "customer_id": asha["id"],
            "products": [{"product_id": gel["id"], "price": 50, "qty": 5}],
            "freebie_id": kit["id"],
            "purchased_at_utc": datetime(2025, 3, 10, tzinfo=timezone.utc),
        }
    )

    stats = services.analytics.dashboard_stats(now=datetime(2025, 3, 20, tzinfo=timezone.utc))

    assert stats.total_customers == 1
    assert stats.current_month_purchases == 1
    assert stats.current_month_freebies == 1
    assert stats.total_products == 2
    # gel is now at 4, at or below the default dashboard threshold of 5
    assert stats.low_stock_products == 1
    assert stats.total_freebies_available == 0
