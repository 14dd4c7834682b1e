"""
Tests for `services/customer_service.py`.
"""

from __future__ import annotations

import pytest

from domain.validation import ValidationError
from services.customer_service import CustomerService


@pytest.fixture
def customers(supabase) -> CustomerService:
    service = CustomerService(client=supabase)
    service.create(
        {"first_name": "Asha", "last_name": "Rao", "phone": "9876543210", "pincode": "411001",
         "dob": "1991-04-12", "anniversary": "2015-11-30"}
    )
    service.create(
        {"first_name": "Ravi", "last_name": "Kumar", "email": "ravi@example.com", "pincode": "560001",
         "dob": "1988-04-02"}
    )
    service.create({"first_name": "Meera", "last_name": "Asharani", "phone": "9123456780"})
    return service


def test_create_rejects_customer_without_contact(supabase) -> None:
    with pytest.raises(ValidationError) as excinfo:
        CustomerService(client=supabase).create({"first_name": "No", "last_name": "Contact"})

    assert set(excinfo.value.errors) == {"phone", "email"}


def test_search_by_name_matches_first_or_last_name(customers) -> None:
    """Verify name search is case-insensitive across first and last name."""

    assert sorted(c["first_name"] for c in customers.search_by_name("asha")) == ["Asha", "Meera"]
    assert [c["first_name"] for c in customers.search_by_name("KUMAR")] == ["Ravi"]


def test_search_by_pincode(customers) -> None:
    assert [c["first_name"] for c in customers.search_by_pincode("560001")] == ["Ravi"]


def test_find_by_phone_and_email(customers) -> None:
    assert [c["first_name"] for c in customers.find_by_phone("9876543210")] == ["Asha"]
    assert [c["first_name"] for c in customers.find_by_email("ravi@example.com")] == ["Ravi"]
    assert customers.find_by_phone("0000000000") == []


def test_birthdays_and_anniversaries_in_month(customers) -> None:
    assert sorted(c["first_name"] for c in customers.get_customers_with_birthdays_in_month(4)) == ["Asha", "Ravi"]
    assert [c["first_name"] for c in customers.get_customers_with_anniversaries_in_month(11)] == ["Asha"]
    assert customers.get_customers_with_birthdays_in_month(1) == []


@pytest.mark.parametrize("month", [0, 13])
def test_month_out_of_range_rejected(customers, month) -> None:
    with pytest.raises(ValueError):
        customers.get_customers_with_birthdays_in_month(month)
