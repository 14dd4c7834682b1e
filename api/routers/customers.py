"""
Customer API Endpoints.

CRUD plus name / pincode search and birthday / anniversary lookups.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_services, require_user
from api.models import CustomerIn
from services.container import Services

router = APIRouter(dependencies=[Depends(require_user)])


@router.get("/customers", summary="List Customers")
def list_customers(
    q: Optional[str] = Query(None, description="Case-insensitive match on first or last name"),
    pincode: Optional[str] = Query(None, description="Exact pincode"),
    birthday_month: Optional[int] = Query(None, ge=1, le=12),
    anniversary_month: Optional[int] = Query(None, ge=1, le=12),
    services: Services = Depends(get_services),
):
    """
    List customers, optionally narrowed by one filter.

    **Example usage:**
    - All customers: `GET /api/v1/customers`
    - Name search: `GET /api/v1/customers?q=rao`
    - Birthdays in April: `GET /api/v1/customers?birthday_month=4`
    """
    customers = services.customers
    if q:
        return customers.search_by_name(q)
    if pincode:
        return customers.search_by_pincode(pincode)
    if birthday_month:
        return customers.get_customers_with_birthdays_in_month(birthday_month)
    if anniversary_month:
        return customers.get_customers_with_anniversaries_in_month(anniversary_month)
    return customers.get_all()


@router.post("/customers", status_code=201, summary="Create Customer")
def create_customer(payload: CustomerIn, services: Services = Depends(get_services)):
    return services.customers.create(payload.model_dump(exclude_none=True))


@router.get("/customers/{customer_id}", summary="Get Customer")
def get_customer(customer_id: str, services: Services = Depends(get_services)):
    customer = services.customers.get_by_id(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail=f"Customer not found: {customer_id}")
    return customer


@router.put("/customers/{customer_id}", summary="Replace Customer")
def update_customer(customer_id: str, payload: CustomerIn, services: Services = Depends(get_services)):
    return services.customers.update(customer_id, payload.model_dump(exclude_none=True))


@router.delete("/customers/{customer_id}", status_code=204, summary="Delete Customer")
def delete_customer(customer_id: str, services: Services = Depends(get_services)):
    services.customers.delete(customer_id)
    return Response(status_code=204)
