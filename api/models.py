"""
API Request Models.

Pydantic models shaping request bodies. Fields are optional on purpose: the
record schemas in domain.schemas decide what is required, so every rule
violation comes back in the same per-field error map.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Customer Models
# ============================================================================

class CustomerIn(BaseModel):
    """Customer record as submitted by a client."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    dob: Optional[str] = None
    anniversary: Optional[str] = None
    skin_type: Optional[str] = None
    hair_type: Optional[str] = None
    for_own_consumption: Optional[bool] = None

    class Config:
        json_schema_extra = {
            "example": {
                "first_name": "Asha",
                "last_name": "Rao",
                "phone": "9876543210",
                "email": "asha@example.com",
                "city": "Pune",
                "pincode": "411001",
                "dob": "1991-04-12",
                "skin_type": "Combination",
                "for_own_consumption": True
            }
        }


# ============================================================================
# Product Models
# ============================================================================

class ProductIn(BaseModel):
    name: Optional[str] = None
    variant: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    qty: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Rose Soap",
                "variant": "100g",
                "category": "Soaps",
                "price": 150,
                "qty": 20
            }
        }


class QuantityChange(BaseModel):
    """Stock adjustment: negative to remove units, positive to restock."""
    change: int


# ============================================================================
# Freebie Models
# ============================================================================

class FreebieIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    blend: Optional[List[str]] = None
    value: Optional[float] = None
    available_qty: Optional[int] = None


# ============================================================================
# Purchase Models
# ============================================================================

class LineItemIn(BaseModel):
    """Single line item in a purchase."""
    product_id: Optional[str] = None
    name: Optional[str] = None
    variant: Optional[str] = None
    price: Optional[float] = None
    qty: Optional[int] = None
    subtotal: Optional[float] = None


class PurchaseIn(BaseModel):
    """Request to record a purchase. Give either customer_id or customer."""
    customer_id: Optional[str] = None
    customer: Optional[CustomerIn] = None
    products: Optional[List[LineItemIn]] = None
    total_amount: Optional[float] = None
    freebie_id: Optional[str] = None
    purchased_at_utc: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "customer": {"first_name": "Asha", "last_name": "Rao", "phone": "9876543210"},
                "products": [
                    {"product_id": "p1", "name": "Rose Soap", "price": 100, "qty": 2},
                    {"product_id": "p2", "name": "Aloe Gel", "price": 50, "qty": 1}
                ],
                "total_amount": 250,
                "freebie_id": "f1"
            }
        }


# ============================================================================
# Auth Models
# ============================================================================

class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: str
    redirect_to: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    errors: Optional[dict] = None

    class Config:
        json_schema_extra = {
            "example": {
                "detail": "products validation failed: {\"name\": \"name is required\"}",
                "errors": {"name": "name is required"}
            }
        }
