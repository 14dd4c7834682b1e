"""
Service-level exceptions.

ValidationError (domain.validation) and StoreError / RecordNotFoundError
(repositories.document_repository) are re-exported so callers can import the
whole taxonomy from one place.
"""

from __future__ import annotations

from typing import List, Optional

from domain.validation import ValidationError
from repositories.document_repository import RecordNotFoundError, StoreError


class InsufficientStockError(ValueError):
    """A stock change would drive a product quantity below zero."""

    def __init__(self, product_id: str, current_qty: int, change: int) -> None:
        self.product_id = product_id
        self.current_qty = current_qty
        self.change = change
        super().__init__(
            f"Cannot reduce quantity below zero for product {product_id}. "
            f"Current: {current_qty}, Change: {change}"
        )


class PurchaseWorkflowError(RuntimeError):
    """
    A purchase failed after it was persisted.

    The original failure is chained as `__cause__`. `compensated` is True when
    every completed step was undone; otherwise `compensation_errors` lists
    what could not be reverted.
    """

    def __init__(
        self,
        step: str,
        purchase_id: Optional[str],
        compensated: bool,
        compensation_errors: Optional[List[str]] = None,
    ) -> None:
        self.step = step
        self.purchase_id = purchase_id
        self.compensated = compensated
        self.compensation_errors = list(compensation_errors or [])
        status = "rolled back" if compensated else "partially rolled back"
        super().__init__(f"Purchase failed during {step}; purchase {purchase_id} was {status}")


__all__ = [
    "ValidationError",
    "StoreError",
    "RecordNotFoundError",
    "InsufficientStockError",
    "PurchaseWorkflowError",
]
