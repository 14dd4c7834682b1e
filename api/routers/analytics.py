"""
Analytics API Endpoints.

Read-only reports computed from the current collections.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_services, require_user
from domain.analytics import month_bounds
from domain.time import utc_now
from services.container import Services

router = APIRouter(dependencies=[Depends(require_user)])


@router.get("/analytics/inventory", summary="Inventory Report")
def inventory_report(
    threshold: Optional[int] = Query(None, ge=0, description="Low stock threshold (default from settings)"),
    limit: Optional[int] = Query(None, ge=1, description="Fast-moving list length (default from settings)"),
    services: Services = Depends(get_services),
):
    """
    Low stock, fast-moving items and customers who never purchased.

    **Example usage:**
    ```
    GET /api/v1/analytics/inventory?threshold=10&limit=5
    ```
    """
    return asdict(services.analytics.inventory_report(threshold=threshold, limit=limit))


@router.get("/analytics/dashboard", summary="Dashboard Stats")
def dashboard_stats(services: Services = Depends(get_services)):
    return asdict(services.analytics.dashboard_stats())


@router.get("/analytics/monthly", summary="Monthly Purchase Stats")
def monthly_stats(
    year: Optional[int] = Query(None, ge=1, le=9999),
    services: Services = Depends(get_services),
):
    """Twelve entries (January to December) with sales totals, counts and averages."""
    return services.purchases.get_monthly_purchase_stats(year)


@router.get("/analytics/sales", summary="Total Sales For Month")
def total_sales(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    services: Services = Depends(get_services),
):
    now = utc_now()
    year = year or now.year
    month = month or now.month
    try:
        start, end = month_bounds(year, month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "year": year,
        "month": month,
        "total_sales": services.purchases.calculate_total_sales(start, end),
    }
