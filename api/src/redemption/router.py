"""Code redemption endpoint."""

from fastapi import APIRouter, HTTPException, status

from src.auth.dependencies import OptionalUser
from src.core.logging import get_logger
from src.kits.schemas import KitSummary

from .dependencies import RedeemRateLimiterDep, RedemptionServiceDep
from .schemas import RedeemCodeRequest, RedeemCodeResponse
from .service import RedemptionError, RedemptionFailedError


logger = get_logger(__name__)

router = APIRouter(prefix="/v1/redeem", tags=["redemption"])


@router.post(
    "",
    response_model=RedeemCodeResponse,
    response_model_exclude_none=True,
    summary="Redeem a kit code",
)
async def redeem_code(
    data: RedeemCodeRequest,
    user: OptionalUser,
    redemption_service: RedemptionServiceDep,
    rate_limiter: RedeemRateLimiterDep,
) -> RedeemCodeResponse:
    """Redeem a single-use code and unlock the kit's courses.

    Rejections are returned with ``success=false`` and the reason in
    ``error``. A store failure is a 500.
    """
    if user is None:
        return RedeemCodeResponse(success=False, error="Please log in to redeem codes")

    if not await rate_limiter.hit(str(user.id)):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many redemption attempts. Please try again later.",
        )

    try:
        result = await redemption_service.redeem(data.code, user)
    except RedemptionFailedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message,
        ) from e
    except RedemptionError as e:
        return RedeemCodeResponse(success=False, error=e.message)

    return RedeemCodeResponse(
        success=True,
        message=result.message,
        kit=KitSummary.from_kit(result.kit),
    )
