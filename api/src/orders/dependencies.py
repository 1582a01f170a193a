"""FastAPI dependencies for orders."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.orders.service import OrderService


_order_service_getter: Callable[[], OrderService] | None = None


def set_order_service_getter(getter: Callable[[], OrderService]) -> None:
    """Set the order service getter function."""
    global _order_service_getter
    _order_service_getter = getter


def get_order_service() -> OrderService:
    """Get OrderService instance from app state."""
    if _order_service_getter is None:
        msg = "OrderService not configured"
        raise RuntimeError(msg)
    return _order_service_getter()


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
