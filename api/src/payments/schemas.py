"""Pydantic schemas for the payments API."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PaymentItem(BaseModel):
    id: str | None = None
    type: str | None = None
    name: str | None = None
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class PaymentActionRequest(BaseModel):
    """Body of ``POST /api/payments``; ``action`` selects the operation.

    Intent id and payment method are accepted in camelCase as the storefront
    client sends them.
    """

    model_config = ConfigDict(populate_by_name=True)

    action: str
    amount: int | None = Field(None, ge=0)
    currency: str | None = None
    items: list[PaymentItem] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    payment_intent_id: str | None = Field(None, alias="paymentIntentId")
    payment_method: str | None = Field(None, alias="paymentMethod")


class PaymentIntentResponse(BaseModel):
    id: str
    amount: int
    currency: str
    status: str
    client_secret: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConfirmPaymentResponse(BaseModel):
    success: bool = True
    payment_intent_id: str
    status: str


class RefundResponse(BaseModel):
    success: bool = True
    refund_id: str
    payment_intent_id: str


class PaymentStatusResponse(BaseModel):
    status: str
    amount: int
