"""Pydantic schemas for code redemption."""

from pydantic import BaseModel, Field

from src.kits.schemas import KitSummary


class RedeemCodeRequest(BaseModel):
    """Redeem a kit code."""

    code: str = Field("", max_length=64)


class RedeemCodeResponse(BaseModel):
    """Redemption outcome. Business failures carry ``error``."""

    success: bool
    message: str | None = None
    error: str | None = None
    kit: KitSummary | None = None
