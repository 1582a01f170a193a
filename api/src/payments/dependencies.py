"""FastAPI dependencies for payments."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.payments.service import PaymentService


_payment_service_getter: Callable[[], PaymentService] | None = None


def set_payment_service_getter(getter: Callable[[], PaymentService]) -> None:
    """Set the payment service getter function."""
    global _payment_service_getter
    _payment_service_getter = getter


def get_payment_service() -> PaymentService:
    """Get PaymentService instance from app state."""
    if _payment_service_getter is None:
        msg = "PaymentService not configured"
        raise RuntimeError(msg)
    return _payment_service_getter()


PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
