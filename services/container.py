"""
Service wiring.

Builds every service around one Supabase client so the API, scripts and
tests share the same construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from services.analytics_service import AnalyticsService
from services.auth_service import AuthService
from services.customer_service import CustomerService
from services.freebie_service import FreebieService
from services.product_service import ProductService
from services.purchase_service import PurchaseService


@dataclass(frozen=True, slots=True)
class Services:
    customers: CustomerService
    products: ProductService
    freebies: FreebieService
    purchases: PurchaseService
    analytics: AnalyticsService
    auth: AuthService


def build_services(client: Any = None, *, session_client_factory: Optional[Callable[[], Any]] = None) -> Services:
    """
    Wire all services.

    Args:
        client: Supabase client; defaults to the shared client from repositories.client
        session_client_factory: Builds the throwaway clients used for sign-in;
            defaults to repositories.client.create_session_client
    """

    if client is None:
        from repositories.client import get_supabase

        client = get_supabase()

    customers = CustomerService(client=client)
    products = ProductService(client=client)
    freebies = FreebieService(product_service=products, client=client)
    purchases = PurchaseService(customers, products, freebies, client=client)

    return Services(
        customers=customers,
        products=products,
        freebies=freebies,
        purchases=purchases,
        analytics=AnalyticsService(customers, products, freebies, purchases),
        auth=AuthService(client, session_client_factory=session_client_factory),
    )


__all__ = ["Services", "build_services"]
