"""
Product service.

CRUD over the `products` collection, catalogue lookups, and the stock
adjustment used by the purchase workflow.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from domain.schemas import PRODUCT_SCHEMA
from repositories.document_repository import DocumentRepository, QueryFilter, RecordNotFoundError
from services.errors import InsufficientStockError

logger = logging.getLogger(__name__)

_COLLECTION = "products"


class ProductService:
    def __init__(self, repository: Optional[DocumentRepository] = None, *, client: Any = None) -> None:
        self.repository = repository or DocumentRepository(_COLLECTION, PRODUCT_SCHEMA, client=client)

    def create(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.create(record)

    def get_by_id(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.repository.get_by_id(product_id)

    def get_all(self) -> List[Dict[str, Any]]:
        return self.repository.get_all()

    def update(self, product_id: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.update(product_id, record)

    def delete(self, product_id: str) -> None:
        self.repository.delete(product_id)

    def search_by_name(self, term: str) -> List[Dict[str, Any]]:
        needle = term.lower()
        return [p for p in self.get_all() if needle in (p.get("name") or "").lower()]

    def search_by_variant(self, variant: str) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("variant", "==", variant)])

    def get_by_category(self, category: str) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("category", "==", category)])

    def get_products_by_price_range(self, min_price: float, max_price: float) -> List[Dict[str, Any]]:
        """Products priced within [min_price, max_price]."""

        if min_price > max_price:
            raise ValueError("min_price must not exceed max_price")
        return [
            p
            for p in self.get_all()
            if isinstance(p.get("price"), (int, float)) and min_price <= p["price"] <= max_price
        ]

    def get_low_inventory_products(self, threshold: int = 5) -> List[Dict[str, Any]]:
        """Products with qty at or below the threshold."""

        return self.repository.query([QueryFilter("qty", "<=", threshold)])

    def update_quantity(self, product_id: str, change: int) -> Dict[str, Any]:
        """
        Adjust on-hand quantity by `change` (negative to sell, positive to restock).

        This is a read-modify-write: two concurrent adjustments of the same
        product can both read the same starting quantity.

        Raises:
            RecordNotFoundError: product does not exist
            InsufficientStockError: the new quantity would be negative
            ValidationError: the stored product no longer satisfies the schema
        """

        product = self.get_by_id(product_id)
        if product is None:
            raise RecordNotFoundError(_COLLECTION, product_id)

        current = product.get("qty") or 0
        new_qty = current + change
        if new_qty < 0:
            raise InsufficientStockError(product_id, current, change)

        updated = self.update(product_id, {**product, "qty": new_qty})
        logger.info(
            "Product quantity adjusted",
            extra={"product_id": product_id, "previous_qty": current, "new_qty": new_qty},
        )
        return updated


__all__ = ["ProductService"]
