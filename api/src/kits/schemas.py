"""Pydantic schemas for the kit catalog, shop and admin kit panel."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.entitlements.schemas import PurchaseResponse
from src.kits.models import CodeType, Kit, KitCode, KitType


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateKitRequest(BaseModel):
    """Create kit request."""

    name: str = Field(..., min_length=1, max_length=200)
    theme: str = Field(..., min_length=1, max_length=100)
    level: int = Field(..., ge=0)
    description: str = ""
    price: Decimal = Field(Decimal("0"), ge=0)
    kit_type: KitType = KitType.NORMAL
    image_url: str | None = None
    features: list[str] = Field(default_factory=list)


class GenerateCodesRequest(BaseModel):
    """Generate redemption codes for a kit."""

    code_type: CodeType = CodeType.ACCESS_CODE
    quantity: int = Field(..., ge=1, le=500)
    expires_at: datetime | None = None


class GrantKitAccessRequest(BaseModel):
    """Manually grant a user access to a kit."""

    user_id: UUID
    kit_id: UUID
    expires_at: datetime | None = None


class PurchaseKitRequest(BaseModel):
    """Shop purchase request."""

    kit_id: UUID


# ==============================================================================
# Response Schemas
# ==============================================================================


class KitResponse(BaseModel):
    """Kit details."""

    id: UUID
    name: str
    theme: str
    level: int
    description: str
    price: Decimal
    kit_type: str
    image_url: str | None = None
    features: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_kit(cls, kit: Kit) -> "KitResponse":
        return cls(**kit.to_dict())


class KitSummary(BaseModel):
    """Kit fields returned after a redemption."""

    id: UUID
    name: str
    theme: str
    level: int
    price: Decimal

    @classmethod
    def from_kit(cls, kit: Kit) -> "KitSummary":
        return cls(
            id=kit.id,
            name=kit.name,
            theme=kit.theme,
            level=kit.level,
            price=kit.price,
        )


class KitCodeResponse(BaseModel):
    """Redemption code joined with its kit name."""

    id: UUID
    code: str
    kit_id: UUID
    kit_name: str | None = None
    code_type: str
    is_used: bool
    used_by: UUID | None = None
    used_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_code(cls, code: KitCode, kit_name: str | None = None) -> "KitCodeResponse":
        return cls(**code.to_dict(), kit_name=kit_name)


class GenerateCodesResponse(BaseModel):
    """Generated codes."""

    message: str
    codes: list[KitCodeResponse]


class AdminKitsResponse(BaseModel):
    """Admin kit panel data."""

    kits: list[KitResponse]
    codes: list[KitCodeResponse]
    purchases: list[PurchaseResponse]


class ShopResponse(BaseModel):
    """Shop listing with the caller's owned kits."""

    kits: list[KitResponse]
    user_kits: list[UUID] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Generic success message."""

    success: bool = True
    message: str
