"""Checkout endpoint."""

from fastapi import APIRouter, HTTPException, status

from src.auth.dependencies import CurrentUser
from src.core.errors import DatabaseError
from src.core.logging import get_logger

from .dependencies import OrderServiceDep
from .schemas import CheckoutRequest, CheckoutResponse


logger = get_logger(__name__)

router = APIRouter(prefix="/v1/checkout", tags=["checkout"])


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Process checkout",
)
async def process_checkout(
    data: CheckoutRequest,
    user: CurrentUser,
    order_service: OrderServiceDep,
) -> CheckoutResponse:
    """Create a completed order from the checkout form (payment is simulated)."""
    try:
        order = await order_service.create_order(
            user_id=user.id,
            payment_method=data.payment_method,
            billing_address=data.billing_address(),
        )
    except DatabaseError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create order",
        ) from e

    return CheckoutResponse(order_id=order.id)
