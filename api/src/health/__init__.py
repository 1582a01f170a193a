"""Health checks."""

from src.health.router import router, set_component_status_getter


__all__ = ["router", "set_component_status_getter"]
