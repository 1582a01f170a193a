"""Payments API (simulated provider)."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.auth.dependencies import CurrentUser

from .dependencies import PaymentServiceDep
from .schemas import (
    ConfirmPaymentResponse,
    PaymentActionRequest,
    PaymentIntentResponse,
    PaymentStatusResponse,
    RefundResponse,
)
from .service import QuoteItem


router = APIRouter(prefix="/api/payments", tags=["payments"])


def _require_intent_id(data: PaymentActionRequest) -> str:
    if not data.payment_intent_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment intent ID required",
        )
    return data.payment_intent_id


@router.post(
    "",
    response_model=PaymentIntentResponse | ConfirmPaymentResponse | RefundResponse,
    summary="Payment actions",
)
async def payment_action(
    data: PaymentActionRequest,
    user: CurrentUser,
    payment_service: PaymentServiceDep,
) -> PaymentIntentResponse | ConfirmPaymentResponse | RefundResponse:
    """Dispatch on ``action``: create-payment-intent, confirm-payment or refund."""
    if data.action == "create-payment-intent":
        amount = data.amount
        if amount is None:
            quote = payment_service.quote(
                QuoteItem(price=item.price, quantity=item.quantity) for item in data.items
            )
            amount = quote.total_cents
        intent = payment_service.create_payment_intent(
            user.id, amount, data.currency, data.metadata
        )
        return PaymentIntentResponse(**asdict(intent))

    if data.action == "confirm-payment":
        intent_id = _require_intent_id(data)
        return ConfirmPaymentResponse(
            payment_intent_id=intent_id,
            status=payment_service.confirm_payment(intent_id),
        )

    if data.action == "refund":
        intent_id = _require_intent_id(data)
        return RefundResponse(
            refund_id=payment_service.refund(intent_id, data.amount),
            payment_intent_id=intent_id,
        )

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid action",
    )


@router.get(
    "",
    response_model=PaymentStatusResponse,
    summary="Payment intent status",
)
async def get_payment_status(
    _: CurrentUser,
    payment_service: PaymentServiceDep,
    payment_intent_id: Annotated[str | None, Query(alias="paymentIntentId")] = None,
) -> PaymentStatusResponse:
    if not payment_intent_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment intent ID required",
        )
    payment_status, amount = payment_service.get_status(payment_intent_id)
    return PaymentStatusResponse(status=payment_status, amount=amount)
