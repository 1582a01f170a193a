"""Health check endpoints."""

from collections.abc import Callable

from fastapi import APIRouter, status
from fastapi.responses import ORJSONResponse

from src.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])

_component_status_getter: Callable[[], dict[str, bool]] | None = None


def set_component_status_getter(getter: Callable[[], dict[str, bool]]) -> None:
    """Set the function reporting which backing services are available."""
    global _component_status_getter
    _component_status_getter = getter


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness check - confirms the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness() -> ORJSONResponse:
    """Readiness check - the database must be connected.

    Redis, storage and email are optional and only reported.
    """
    settings = get_settings()
    components = _component_status_getter() if _component_status_getter else {}
    ready = components.get("database", False)
    return ORJSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "unavailable",
            "environment": settings.environment,
            "debug": settings.debug,
            "components": components,
        },
    )


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
