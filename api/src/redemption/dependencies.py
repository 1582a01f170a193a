"""FastAPI dependencies for code redemption."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.core.redis import RateLimiter
from src.redemption.service import RedemptionService


_redemption_service_getter: Callable[[], RedemptionService] | None = None
_redeem_rate_limiter_getter: Callable[[], RateLimiter] | None = None


def set_redemption_service_getter(getter: Callable[[], RedemptionService]) -> None:
    """Set the redemption service getter function."""
    global _redemption_service_getter
    _redemption_service_getter = getter


def set_redeem_rate_limiter_getter(getter: Callable[[], RateLimiter]) -> None:
    """Set the redemption rate limiter getter function."""
    global _redeem_rate_limiter_getter
    _redeem_rate_limiter_getter = getter


def get_redemption_service() -> RedemptionService:
    """Get RedemptionService instance from app state."""
    if _redemption_service_getter is None:
        msg = "RedemptionService not configured"
        raise RuntimeError(msg)
    return _redemption_service_getter()


def get_redeem_rate_limiter() -> RateLimiter:
    """Get the redemption RateLimiter from app state."""
    if _redeem_rate_limiter_getter is None:
        msg = "RateLimiter not configured"
        raise RuntimeError(msg)
    return _redeem_rate_limiter_getter()


RedemptionServiceDep = Annotated[RedemptionService, Depends(get_redemption_service)]
RedeemRateLimiterDep = Annotated[RateLimiter, Depends(get_redeem_rate_limiter)]
