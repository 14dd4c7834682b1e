"""
Freebie service.

CRUD over the `freebies` collection and the redemption ledger
(`freebies_sent`). Ledger entries are written once per redemption and never
updated; the service only creates, reads and (when a purchase is rolled back)
revokes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from domain.schemas import FREEBIE_SCHEMA, FREEBIE_SENT_SCHEMA
from domain.time import require_utc_timestamp
from repositories.document_repository import (
    DocumentRepository,
    QueryFilter,
    QueryOptions,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

_COLLECTION = "freebies"
_SENT_COLLECTION = "freebies_sent"


@dataclass(frozen=True, slots=True)
class FreebieRedemption:
    """
    Outcome of one redemption.

    `previous_qty` / `new_qty` are None when the freebie record was missing
    and no quantity was touched. The quantity floors at zero, so a redemption
    of an exhausted freebie leaves both at 0.
    """

    entry: Dict[str, Any]
    previous_qty: Optional[int] = None
    new_qty: Optional[int] = None

    @property
    def decremented(self) -> bool:
        return (
            self.previous_qty is not None
            and self.new_qty is not None
            and self.new_qty < self.previous_qty
        )


class FreebieService:
    def __init__(
        self,
        repository: Optional[DocumentRepository] = None,
        sent_repository: Optional[DocumentRepository] = None,
        *,
        product_service: Any = None,
        client: Any = None,
    ) -> None:
        self.repository = repository or DocumentRepository(_COLLECTION, FREEBIE_SCHEMA, client=client)
        self.sent_repository = sent_repository or DocumentRepository(
            _SENT_COLLECTION,
            FREEBIE_SENT_SCHEMA,
            client=client,
            timestamp_fields=("sent_at_utc",),
        )
        self.product_service = product_service

    def create(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.create(record)

    def get_by_id(self, freebie_id: str) -> Optional[Dict[str, Any]]:
        return self.repository.get_by_id(freebie_id)

    def get_all(self) -> List[Dict[str, Any]]:
        return self.repository.get_all()

    def update(self, freebie_id: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.update(freebie_id, record)

    def delete(self, freebie_id: str) -> None:
        self.repository.delete(freebie_id)

    def search_by_name(self, term: str) -> List[Dict[str, Any]]:
        needle = term.lower()
        return [f for f in self.get_all() if needle in (f.get("name") or "").lower()]

    def get_available_freebies(self) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("available_qty", ">", 0)])

    def get_blend_products(self, freebie_id: str) -> List[Dict[str, Any]]:
        """
        Resolve a freebie's blend to product records, in blend order.

        Blend entries whose product no longer exists are skipped.
        """

        if self.product_service is None:
            raise RuntimeError("FreebieService was built without a product service")

        freebie = self.get_by_id(freebie_id)
        if freebie is None:
            raise RecordNotFoundError(_COLLECTION, freebie_id)

        products = []
        for product_id in freebie.get("blend") or []:
            product = self.product_service.get_by_id(product_id)
            if product is None:
                logger.warning(
                    "Blend references a missing product",
                    extra={"freebie_id": freebie_id, "product_id": product_id},
                )
                continue
            products.append(product)
        return products

    def record_freebie_sent(self, entry: Mapping[str, Any]) -> FreebieRedemption:
        """
        Append a ledger entry and take one unit off the freebie's available quantity.

        The quantity never goes below zero. If the quantity update fails, the
        ledger entry just written is deleted again before the error propagates.

        Args:
            entry: customer_id, freebie_id, purchase_id, freebie_name, sent_at_utc

        Returns:
            FreebieRedemption with the stored ledger entry and the quantity change
        """

        created = self.sent_repository.create(entry)
        freebie_id = created["freebie_id"]

        try:
            freebie = self.get_by_id(freebie_id)
            if freebie is None:
                logger.warning("Freebie redeemed but record is missing", extra={"freebie_id": freebie_id})
                return FreebieRedemption(entry=created)

            previous = freebie.get("available_qty") or 0
            new_qty = max(0, previous - 1)
            self.update(freebie_id, {**freebie, "available_qty": new_qty})
        except Exception:
            logger.warning(
                "Freebie quantity update failed; removing ledger entry",
                extra={"freebie_id": freebie_id, "entry_id": created.get("id")},
            )
            self.sent_repository.delete(created["id"])
            raise

        logger.info(
            "Freebie redeemed",
            extra={"freebie_id": freebie_id, "purchase_id": created.get("purchase_id"), "new_qty": new_qty},
        )
        return FreebieRedemption(entry=created, previous_qty=previous, new_qty=new_qty)

    def revoke_redemption(self, redemption: FreebieRedemption) -> None:
        """Undo a redemption: delete its ledger entry and give back the unit it took."""

        self.sent_repository.delete(redemption.entry["id"])
        if not redemption.decremented:
            return

        freebie_id = redemption.entry["freebie_id"]
        freebie = self.get_by_id(freebie_id)
        if freebie is None:
            raise RecordNotFoundError(_COLLECTION, freebie_id)
        restored = (freebie.get("available_qty") or 0) + 1
        self.update(freebie_id, {**freebie, "available_qty": restored})

    def has_customer_received_freebie(self, customer_id: str, freebie_id: str) -> bool:
        matches = self.sent_repository.query(
            [
                QueryFilter("customer_id", "==", customer_id),
                QueryFilter("freebie_id", "==", freebie_id),
            ],
            QueryOptions(limit=1),
        )
        return bool(matches)

    def get_freebies_sent_to_customer(self, customer_id: str) -> List[Dict[str, Any]]:
        return self.sent_repository.query(
            [QueryFilter("customer_id", "==", customer_id)],
            QueryOptions(order_by="sent_at_utc", direction="desc"),
        )

    def get_freebies_sent_between(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Ledger entries with sent_at_utc in [start, end]."""

        require_utc_timestamp("start", start)
        require_utc_timestamp("end", end)
        return self.sent_repository.query(
            [
                QueryFilter("sent_at_utc", ">=", start),
                QueryFilter("sent_at_utc", "<=", end),
            ]
        )

    def get_freebies_not_received_by_customer(self, customer_id: str) -> List[Dict[str, Any]]:
        """Freebies still in stock that this customer has never received."""

        received = {entry.get("freebie_id") for entry in self.get_freebies_sent_to_customer(customer_id)}
        return [
            freebie
            for freebie in self.get_all()
            if freebie.get("id") not in received and (freebie.get("available_qty") or 0) > 0
        ]


__all__ = ["FreebieRedemption", "FreebieService"]
