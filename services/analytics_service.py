"""
Analytics service.

Loads the collections and runs the pure calculations in domain.analytics.
Nothing computed here is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from config import get_settings
from domain.analytics import (
    customers_without_purchases,
    fast_moving,
    freebie_redemptions,
    low_stock,
    month_bounds,
    sold_quantities,
)
from domain.time import utc_now
from services.customer_service import CustomerService
from services.freebie_service import FreebieService
from services.product_service import ProductService
from services.purchase_service import PurchaseService


@dataclass(frozen=True, slots=True)
class InventoryReport:
    """
    Stock health snapshot.

    Fast-moving entries are copies of the product / freebie records annotated
    with `qty_sold`.
    """

    threshold: int
    low_stock_products: List[Mapping[str, Any]]
    low_stock_freebies: List[Mapping[str, Any]]
    fast_moving_products: List[Dict[str, Any]]
    fast_moving_freebies: List[Dict[str, Any]]
    customers_without_purchases: List[Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class DashboardStats:
    total_customers: int
    current_month_purchases: int
    current_month_freebies: int
    total_products: int
    low_stock_products: int
    total_freebies_available: int


class AnalyticsService:
    def __init__(
        self,
        customer_service: CustomerService,
        product_service: ProductService,
        freebie_service: FreebieService,
        purchase_service: PurchaseService,
    ) -> None:
        self.customer_service = customer_service
        self.product_service = product_service
        self.freebie_service = freebie_service
        self.purchase_service = purchase_service

    def inventory_report(self, threshold: Optional[int] = None, limit: Optional[int] = None) -> InventoryReport:
        settings = get_settings()
        threshold = settings.low_stock_threshold if threshold is None else threshold
        limit = settings.fast_moving_limit if limit is None else limit

        products = self.product_service.get_all()
        freebies = self.freebie_service.get_all()
        customers = self.customer_service.get_all()
        purchases = self.purchase_service.get_all()

        return InventoryReport(
            threshold=threshold,
            low_stock_products=low_stock(products, "qty", threshold),
            low_stock_freebies=low_stock(freebies, "available_qty", threshold),
            fast_moving_products=fast_moving(products, sold_quantities(purchases), limit),
            fast_moving_freebies=fast_moving(freebies, freebie_redemptions(purchases), limit),
            customers_without_purchases=customers_without_purchases(customers, purchases),
        )

    def dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        """Counts for the landing dashboard; "current month" is the UTC calendar month of `now`."""

        now = now or utc_now()
        start, end = month_bounds(now.year, now.month)
        threshold = get_settings().dashboard_low_stock_threshold

        return DashboardStats(
            total_customers=len(self.customer_service.get_all()),
            current_month_purchases=len(self.purchase_service.get_purchases_by_date_range(start, end)),
            current_month_freebies=len(self.freebie_service.get_freebies_sent_between(start, end)),
            total_products=len(self.product_service.get_all()),
            low_stock_products=len(self.product_service.get_low_inventory_products(threshold)),
            total_freebies_available=len(self.freebie_service.get_available_freebies()),
        )


__all__ = ["InventoryReport", "DashboardStats", "AnalyticsService"]
