"""
Freebie API Endpoints.

CRUD, availability, blend contents and the redemption ledger.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_services, require_user
from api.models import FreebieIn
from services.container import Services

router = APIRouter(dependencies=[Depends(require_user)])


@router.get("/freebies", summary="List Freebies")
def list_freebies(
    q: Optional[str] = Query(None, description="Case-insensitive match on freebie name"),
    available: bool = Query(False, description="Only freebies with available_qty > 0"),
    services: Services = Depends(get_services),
):
    freebies = services.freebies
    if q:
        return freebies.search_by_name(q)
    if available:
        return freebies.get_available_freebies()
    return freebies.get_all()


@router.get("/freebies/sent", summary="Freebies Sent To Customer")
def list_freebies_sent(customer_id: str = Query(...), services: Services = Depends(get_services)):
    """Ledger entries for one customer, newest first."""
    return services.freebies.get_freebies_sent_to_customer(customer_id)


@router.get("/freebies/eligible", summary="Freebies Not Yet Received")
def list_eligible_freebies(customer_id: str = Query(...), services: Services = Depends(get_services)):
    """In-stock freebies the customer has never received."""
    return services.freebies.get_freebies_not_received_by_customer(customer_id)


@router.post("/freebies", status_code=201, summary="Create Freebie")
def create_freebie(payload: FreebieIn, services: Services = Depends(get_services)):
    return services.freebies.create(payload.model_dump(exclude_none=True))


@router.get("/freebies/{freebie_id}", summary="Get Freebie")
def get_freebie(freebie_id: str, services: Services = Depends(get_services)):
    freebie = services.freebies.get_by_id(freebie_id)
    if freebie is None:
        raise HTTPException(status_code=404, detail=f"Freebie not found: {freebie_id}")
    return freebie


@router.get("/freebies/{freebie_id}/blend", summary="Blend Products")
def get_freebie_blend(freebie_id: str, services: Services = Depends(get_services)):
    return services.freebies.get_blend_products(freebie_id)


@router.put("/freebies/{freebie_id}", summary="Replace Freebie")
def update_freebie(freebie_id: str, payload: FreebieIn, services: Services = Depends(get_services)):
    return services.freebies.update(freebie_id, payload.model_dump(exclude_none=True))


@router.delete("/freebies/{freebie_id}", status_code=204, summary="Delete Freebie")
def delete_freebie(freebie_id: str, services: Services = Depends(get_services)):
    services.freebies.delete(freebie_id)
    return Response(status_code=204)
