"""
Customer service.

CRUD over the `customers` collection plus the read-side lookups used by the
purchase workflow (phone / email matching) and by the marketing views
(birthdays and anniversaries in a month).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from domain.schemas import CUSTOMER_SCHEMA
from repositories.document_repository import DocumentRepository, QueryFilter

_COLLECTION = "customers"


def _month_of(value: Any) -> Optional[int]:
    """Month (1-12) of a stored date value, or None when it cannot be read."""

    if isinstance(value, (datetime, date)):
        return value.month
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).month
        except ValueError:
            return None
    return None


def _require_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")


class CustomerService:
    def __init__(self, repository: Optional[DocumentRepository] = None, *, client: Any = None) -> None:
        self.repository = repository or DocumentRepository(_COLLECTION, CUSTOMER_SCHEMA, client=client)

    def create(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.create(record)

    def get_by_id(self, customer_id: str) -> Optional[Dict[str, Any]]:
        return self.repository.get_by_id(customer_id)

    def get_all(self) -> List[Dict[str, Any]]:
        return self.repository.get_all()

    def update(self, customer_id: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.repository.update(customer_id, record)

    def delete(self, customer_id: str) -> None:
        self.repository.delete(customer_id)

    def search_by_name(self, term: str) -> List[Dict[str, Any]]:
        """
        Case-insensitive substring match on first or last name.

        Filtering happens client-side over every customer.
        """

        needle = term.lower()
        return [
            customer
            for customer in self.get_all()
            if needle in (customer.get("first_name") or "").lower()
            or needle in (customer.get("last_name") or "").lower()
        ]

    def search_by_pincode(self, pincode: str) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("pincode", "==", pincode)])

    def find_by_phone(self, phone: str) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("phone", "==", phone)])

    def find_by_email(self, email: str) -> List[Dict[str, Any]]:
        return self.repository.query([QueryFilter("email", "==", email)])

    def get_customers_with_birthdays_in_month(self, month: int) -> List[Dict[str, Any]]:
        _require_month(month)
        return [c for c in self.get_all() if _month_of(c.get("dob")) == month]

    def get_customers_with_anniversaries_in_month(self, month: int) -> List[Dict[str, Any]]:
        _require_month(month)
        return [c for c in self.get_all() if _month_of(c.get("anniversary")) == month]


__all__ = ["CustomerService"]
