"""Pydantic schemas for the purchase ledger."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from src.entitlements.models import Purchase


class PurchaseResponse(BaseModel):
    """Ledger entry, optionally joined with the kit name."""

    id: UUID
    user_id: UUID
    kit_id: UUID
    kit_name: str | None = None
    amount: Decimal
    currency: str
    payment_method: str
    payment_status: str
    kit_code_id: UUID | None = None
    created_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_purchase(
        cls, purchase: Purchase, kit_name: str | None = None
    ) -> "PurchaseResponse":
        return cls(**purchase.to_dict(), kit_name=kit_name)
