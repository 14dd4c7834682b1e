"""
Purchases API Endpoints.

Endpoints for recording purchases and reading purchase history.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_services, require_user
from api.models import PurchaseIn
from domain.time import parse_utc_datetime
from services.container import Services

router = APIRouter(dependencies=[Depends(require_user)])


@router.post("/purchases", status_code=201, summary="Record Purchase")
def create_purchase(payload: PurchaseIn, services: Services = Depends(get_services)):
    """
    Record a purchase with its stock and freebie side effects.

    **Process:**
    1. Resolves the customer (`customer_id`, or `customer` matched by phone then email, else created)
    2. Validates the purchase and every line item, then checks stock
    3. Stores the purchase
    4. Decrements stock for each line item
    5. Redeems the selected freebie, if any

    If step 4 or 5 fails, the completed steps are undone and the response is
    409 with the failed step and the compensation outcome.

    **Example request:**
    ```json
    {
      "customer": {"first_name": "Asha", "last_name": "Rao", "phone": "9876543210"},
      "products": [
        {"product_id": "p1", "name": "Rose Soap", "price": 100, "qty": 2},
        {"product_id": "p2", "name": "Aloe Gel", "price": 50, "qty": 1}
      ],
      "total_amount": 250,
      "freebie_id": "f1"
    }
    ```
    """
    return services.purchases.create_purchase(payload.model_dump(exclude_none=True))


@router.get("/purchases", summary="List Purchases")
def list_purchases(
    customer_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None, description="Inclusive lower bound (ISO-8601)"),
    end: Optional[datetime] = Query(None, description="Inclusive upper bound (ISO-8601)"),
    with_freebie: bool = Query(False, description="Only purchases that redeemed a freebie"),
    services: Services = Depends(get_services),
):
    """
    List purchases, optionally narrowed by one filter.

    `start` and `end` must be given together; values without an offset are
    read as UTC.
    """
    purchases = services.purchases
    if customer_id:
        return purchases.get_purchases_by_customer(customer_id)
    if start is not None or end is not None:
        if start is None or end is None:
            raise HTTPException(status_code=400, detail="start and end must be given together")
        return purchases.get_purchases_by_date_range(parse_utc_datetime(start), parse_utc_datetime(end))
    if with_freebie:
        return purchases.get_purchases_with_freebies()
    return purchases.get_all()


@router.get("/purchases/{purchase_id}", summary="Get Purchase")
def get_purchase(purchase_id: str, services: Services = Depends(get_services)):
    purchase = services.purchases.get_by_id(purchase_id)
    if purchase is None:
        raise HTTPException(status_code=404, detail=f"Purchase not found: {purchase_id}")
    return purchase


@router.delete("/purchases/{purchase_id}", status_code=204, summary="Delete Purchase")
def delete_purchase(purchase_id: str, services: Services = Depends(get_services)):
    """Delete the purchase record only. Stock and freebie ledger are left untouched."""
    services.purchases.delete(purchase_id)
    return Response(status_code=204)
