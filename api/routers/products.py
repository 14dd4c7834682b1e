"""
Product API Endpoints.

CRUD, catalogue filters and stock adjustment.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.dependencies import get_services, require_user
from api.models import ProductIn, QuantityChange
from services.container import Services

router = APIRouter(dependencies=[Depends(require_user)])


@router.get("/products", summary="List Products")
def list_products(
    q: Optional[str] = Query(None, description="Case-insensitive match on product name"),
    variant: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    low_stock_threshold: Optional[int] = Query(None, ge=0, description="Only products with qty at or below this"),
    services: Services = Depends(get_services),
):
    """
    List products, optionally narrowed by one filter.

    **Example usage:**
    - Name search: `GET /api/v1/products?q=soap`
    - Price range: `GET /api/v1/products?min_price=100&max_price=300`
    - Low stock: `GET /api/v1/products?low_stock_threshold=5`
    """
    products = services.products
    if q:
        return products.search_by_name(q)
    if variant:
        return products.search_by_variant(variant)
    if category:
        return products.get_by_category(category)
    if min_price is not None or max_price is not None:
        try:
            return products.get_products_by_price_range(
                min_price if min_price is not None else 0,
                max_price if max_price is not None else float("inf"),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if low_stock_threshold is not None:
        return products.get_low_inventory_products(low_stock_threshold)
    return products.get_all()


@router.post("/products", status_code=201, summary="Create Product")
def create_product(payload: ProductIn, services: Services = Depends(get_services)):
    return services.products.create(payload.model_dump(exclude_none=True))


@router.get("/products/{product_id}", summary="Get Product")
def get_product(product_id: str, services: Services = Depends(get_services)):
    product = services.products.get_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")
    return product


@router.put("/products/{product_id}", summary="Replace Product")
def update_product(product_id: str, payload: ProductIn, services: Services = Depends(get_services)):
    return services.products.update(product_id, payload.model_dump(exclude_none=True))


@router.post("/products/{product_id}/quantity", summary="Adjust Stock")
def adjust_quantity(product_id: str, payload: QuantityChange, services: Services = Depends(get_services)):
    return services.products.update_quantity(product_id, payload.change)


@router.delete("/products/{product_id}", status_code=204, summary="Delete Product")
def delete_product(product_id: str, services: Services = Depends(get_services)):
    services.products.delete(product_id)
    return Response(status_code=204)
