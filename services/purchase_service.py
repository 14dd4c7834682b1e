"""
Purchase service for recording sales.

Handles:
- Customer resolution (explicit id, or match an inline customer by phone then email, else create)
- Purchase and line item validation (all problems reported together, before any write)
- Stock decrement for every line item
- Optional freebie redemption
- Compensation when a step after the purchase write fails

The steps run strictly in sequence. The store offers no multi-document
transaction here, so a failure after the purchase is written is undone by
explicit compensating writes (restock, revoke redemption, delete purchase).
Compensation is best-effort: concurrent writers to the same product can still
interleave with it.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from domain.analytics import month_bounds, monthly_purchase_stats, year_bounds
from domain.schemas import LINE_ITEM_SCHEMA, PURCHASE_SCHEMA, line_subtotal
from domain.time import parse_utc_datetime, require_utc_timestamp, utc_now
from domain.validation import ValidationError, is_absent, validate_data
from repositories.document_repository import (
    DocumentRepository,
    QueryFilter,
    QueryOptions,
    RecordNotFoundError,
)
from services.customer_service import CustomerService
from services.errors import InsufficientStockError, PurchaseWorkflowError
from services.freebie_service import FreebieService
from services.product_service import ProductService

logger = logging.getLogger(__name__)

_COLLECTION = "purchases"
_VALIDATION_LABEL = "purchases validation"

STEP_STOCK = "stock decrement"
STEP_FREEBIE = "freebie redemption"

_CUSTOMER_FIELDS = {name: PURCHASE_SCHEMA[name] for name in ("customer_id", "customer")}

Compensation = Tuple[str, Callable[[], Any]]


def _prepare_line_items(raw: Any) -> Any:
    """Copy line items and fill in missing subtotals. Non-list input is returned untouched."""

    if not isinstance(raw, (list, tuple)):
        return raw

    lines: List[Any] = []
    for item in raw:
        if not isinstance(item, Mapping):
            lines.append(item)
            continue
        line = dict(item)
        if is_absent(line.get("subtotal")):
            subtotal = line_subtotal(line)
            if subtotal is not None:
                line["subtotal"] = subtotal
        lines.append(line)
    return lines


def _sum_subtotals(lines: Any) -> Optional[float]:
    if not isinstance(lines, list):
        return None
    total = 0.0
    for line in lines:
        subtotal = line_subtotal(line) if isinstance(line, Mapping) else None
        if subtotal is None:
            return None
        total += subtotal
    return total


def _purchase_time(value: Any) -> Any:
    if is_absent(value):
        return utc_now()
    if isinstance(value, (str, datetime)):
        try:
            return parse_utc_datetime(value)
        except ValueError:
            # left as-is so validation reports it
            return value
    return value


class PurchaseService:
    def __init__(
        self,
        customer_service: CustomerService,
        product_service: ProductService,
        freebie_service: FreebieService,
        repository: Optional[DocumentRepository] = None,
        *,
        client: Any = None,
    ) -> None:
        self.customer_service = customer_service
        self.product_service = product_service
        self.freebie_service = freebie_service
        self.repository = repository or DocumentRepository(
            _COLLECTION,
            PURCHASE_SCHEMA,
            client=client,
            timestamp_fields=("purchased_at_utc",),
        )

    def get_by_id(self, purchase_id: str) -> Optional[Dict[str, Any]]:
        return self.repository.get_by_id(purchase_id)

    def get_all(self) -> List[Dict[str, Any]]:
        return self.repository.get_all()

    def update(self, purchase_id: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.update(purchase_id, record)

    def delete(self, purchase_id: str) -> None:
        self.repository.delete(purchase_id)

    # ------------------------------------------------------------------
    # Purchase creation
    # ------------------------------------------------------------------

    def _resolve_customer(self, data: Mapping[str, Any]) -> str:
        result = validate_data(data, _CUSTOMER_FIELDS)
        if not result.is_valid:
            raise ValidationError(result.errors, label=_VALIDATION_LABEL)

        customer_id = data.get("customer_id")
        if not is_absent(customer_id):
            return customer_id

        customer = data["customer"]
        phone, email = customer.get("phone"), customer.get("email")

        matches: List[Dict[str, Any]] = []
        if phone:
            matches = self.customer_service.find_by_phone(phone)
        if not matches and email:
            matches = self.customer_service.find_by_email(email)

        if matches:
            logger.info("Matched existing customer", extra={"customer_id": matches[0]["id"]})
            return matches[0]["id"]

        created = self.customer_service.create(customer)
        logger.info("Created customer for purchase", extra={"customer_id": created["id"]})
        return created["id"]

    def _build_purchase(self, data: Mapping[str, Any], customer_id: str) -> Dict[str, Any]:
        lines = _prepare_line_items(data.get("products"))

        total_amount = data.get("total_amount")
        if is_absent(total_amount):
            total_amount = _sum_subtotals(lines)

        purchase: Dict[str, Any] = {
            "customer_id": customer_id,
            "products": lines,
            "total_amount": total_amount,
            "purchased_at_utc": _purchase_time(data.get("purchased_at_utc")),
        }
        if not is_absent(data.get("freebie_id")):
            purchase["freebie_id"] = data["freebie_id"]
        return purchase

    def validate_purchase(self, purchase: Mapping[str, Any]) -> None:
        """
        Validate a purchase and each of its line items.

        Line item errors are keyed `products[<index>].<field>`.

        Raises:
            ValidationError: with every failing field of the purchase and its lines
        """

        errors = dict(validate_data(purchase, PURCHASE_SCHEMA).errors)

        lines = purchase.get("products")
        if isinstance(lines, (list, tuple)):
            for index, line in enumerate(lines):
                if not isinstance(line, Mapping):
                    errors[f"products[{index}]"] = "line item must be an object"
                    continue
                for name, message in validate_data(line, LINE_ITEM_SCHEMA).errors.items():
                    errors[f"products[{index}].{name}"] = message

        if errors:
            raise ValidationError(errors, label=_VALIDATION_LABEL)

    def _check_stock(self, lines: List[Mapping[str, Any]]) -> None:
        """Fail before any write when a product is missing or has too little stock."""

        requested: "OrderedDict[str, int]" = OrderedDict()
        for line in lines:
            requested[line["product_id"]] = requested.get(line["product_id"], 0) + line["qty"]

        for product_id, qty in requested.items():
            product = self.product_service.get_by_id(product_id)
            if product is None:
                raise RecordNotFoundError("products", product_id)
            on_hand = product.get("qty") or 0
            if on_hand < qty:
                raise InsufficientStockError(product_id, on_hand, -qty)

    def _compensate(self, compensations: List[Compensation]) -> List[str]:
        failures: List[str] = []
        for description, undo in reversed(compensations):
            try:
                undo()
            except Exception as exc:
                logger.error(
                    "Compensation step failed",
                    extra={"compensation": description, "error": str(exc)},
                )
                failures.append(f"{description}: {exc}")
            else:
                logger.warning("Compensation step applied", extra={"compensation": description})
        return failures

    def create_purchase(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Record a purchase and apply its side effects.

        Process:
        1. Resolve the customer (explicit id, phone match, email match, or new customer)
        2. Build and validate the purchase and its line items; check stock
        3. Persist the purchase
        4. Decrement stock for every line item
        5. Redeem the selected freebie, if any

        Args:
            data: customer_id or customer, products, optional total_amount,
                  freebie_id and purchased_at_utc

        Returns:
            The stored purchase record

        Raises:
            ValidationError: invalid purchase or line items (nothing written except
                possibly a new customer in step 1)
            InsufficientStockError / RecordNotFoundError: stock check failed before the write
            PurchaseWorkflowError: step 4 or 5 failed; completed steps were compensated

        Example:
            purchase = purchase_service.create_purchase({
                "customer": {"first_name": "Asha", "last_name": "Rao", "phone": "9876543210"},
                "products": [{"product_id": "p1", "price": 100, "qty": 2}],
                "freebie_id": "f1",
            })
        """

        customer_id = self._resolve_customer(data)

        purchase = self._build_purchase(data, customer_id)
        self.validate_purchase(purchase)
        self._check_stock(purchase["products"])

        created = self.repository.create(purchase)
        purchase_id = created["id"]
        logger.info(
            "Purchase recorded",
            extra={"purchase_id": purchase_id, "customer_id": customer_id, "total_amount": created.get("total_amount")},
        )

        compensations: List[Compensation] = [
            (f"delete purchase {purchase_id}", lambda: self.repository.delete(purchase_id)),
        ]

        step = STEP_STOCK
        try:
            for line in purchase["products"]:
                product_id, qty = line["product_id"], line["qty"]
                self.product_service.update_quantity(product_id, -qty)
                compensations.append(
                    (
                        f"restock {qty} of product {product_id}",
                        lambda product_id=product_id, qty=qty: self.product_service.update_quantity(product_id, qty),
                    )
                )

            step = STEP_FREEBIE
            freebie_id = purchase.get("freebie_id")
            if freebie_id:
                freebie = self.freebie_service.get_by_id(freebie_id)
                if freebie is None:
                    logger.warning(
                        "Selected freebie not found; skipping redemption",
                        extra={"purchase_id": purchase_id, "freebie_id": freebie_id},
                    )
                else:
                    redemption = self.freebie_service.record_freebie_sent(
                        {
                            "customer_id": customer_id,
                            "freebie_id": freebie_id,
                            "purchase_id": purchase_id,
                            "freebie_name": freebie["name"],
                            "sent_at_utc": purchase["purchased_at_utc"],
                        }
                    )
                    compensations.append(
                        (
                            f"revoke freebie {freebie_id}",
                            lambda: self.freebie_service.revoke_redemption(redemption),
                        )
                    )
        except Exception as exc:
            logger.warning(
                "Purchase step failed; compensating",
                extra={"purchase_id": purchase_id, "step": step, "error": str(exc)},
            )
            failures = self._compensate(compensations)
            raise PurchaseWorkflowError(
                step=step,
                purchase_id=purchase_id,
                compensated=not failures,
                compensation_errors=failures,
            ) from exc

        return created

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_purchases_by_customer(self, customer_id: str) -> List[Dict[str, Any]]:
        """A customer's purchases, newest first."""

        return self.repository.query(
            [QueryFilter("customer_id", "==", customer_id)],
            QueryOptions(order_by="purchased_at_utc", direction="desc"),
        )

    def get_purchases_by_date_range(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """Purchases with purchased_at_utc in [start, end], newest first."""

        require_utc_timestamp("start", start)
        require_utc_timestamp("end", end)
        return self.repository.query(
            [
                QueryFilter("purchased_at_utc", ">=", start),
                QueryFilter("purchased_at_utc", "<=", end),
            ],
            QueryOptions(order_by="purchased_at_utc", direction="desc"),
        )

    def get_purchases_with_freebies(self) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("freebie_id", "!=", None)])

    def calculate_total_sales(self, start: datetime, end: datetime) -> float:
        return sum(p.get("total_amount") or 0 for p in self.get_purchases_by_date_range(start, end))

    def get_monthly_purchase_stats(self, year: Optional[int] = None) -> List[Dict[str, Any]]:
        year = year or utc_now().year
        start, end = year_bounds(year)
        return monthly_purchase_stats(self.get_purchases_by_date_range(start, end), year)

    def get_current_month_purchase_count(self, now: Optional[datetime] = None) -> int:
        now = now or utc_now()
        start, end = month_bounds(now.year, now.month)
        return len(self.get_purchases_by_date_range(start, end))


__all__ = ["PurchaseService", "STEP_STOCK", "STEP_FREEBIE"]
