"""FastAPI dependencies for the kit catalog."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status

from src.kits.service import KitService


_kit_service_getter: Callable[[], KitService] | None = None


def set_kit_service_getter(getter: Callable[[], KitService]) -> None:
    """Set the kit service getter function."""
    global _kit_service_getter
    _kit_service_getter = getter


def get_kit_service() -> KitService:
    """Get KitService instance from app state."""
    if _kit_service_getter is None:
        msg = "KitService not configured"
        raise RuntimeError(msg)
    return _kit_service_getter()


KitServiceDep = Annotated[KitService, Depends(get_kit_service)]


def handle_kit_error(error: Exception) -> HTTPException:
    """Convert kit errors to HTTPException."""
    status_map = {
        "kit_not_found": status.HTTP_404_NOT_FOUND,
        "code_not_found": status.HTTP_404_NOT_FOUND,
        "database_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    code = getattr(error, "code", "kit_error")
    message = getattr(error, "message", str(error))

    return HTTPException(
        status_code=status_map.get(code, status.HTTP_400_BAD_REQUEST),
        detail=message,
    )
