"""Pydantic schemas for checkout."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.orders.models import Order


class CheckoutRequest(BaseModel):
    """Checkout form. Card details are accepted but never stored."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    payment_method: str = Field("card", max_length=50)
    card_number: str | None = None
    expiry: str | None = None
    cvv: str | None = None
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    def billing_address(self) -> dict[str, str]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": str(self.email),
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }


class CheckoutResponse(BaseModel):
    success: bool = True
    order_id: UUID


class OrderResponse(BaseModel):
    """Order details."""

    id: UUID
    status: str
    total_amount: Decimal
    payment_method: str
    billing_address: dict[str, str] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        data = order.to_dict()
        data.pop("user_id")
        return cls(**data)
