"""FastAPI dependencies for entitlements."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.entitlements.service import EntitlementService


_entitlement_service_getter: Callable[[], EntitlementService] | None = None


def set_entitlement_service_getter(getter: Callable[[], EntitlementService]) -> None:
    """Set the entitlement service getter function."""
    global _entitlement_service_getter
    _entitlement_service_getter = getter


def get_entitlement_service() -> EntitlementService:
    """Get EntitlementService instance from app state."""
    if _entitlement_service_getter is None:
        msg = "EntitlementService not configured"
        raise RuntimeError(msg)
    return _entitlement_service_getter()


EntitlementServiceDep = Annotated[EntitlementService, Depends(get_entitlement_service)]
