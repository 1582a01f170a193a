"""FastAPI dependencies for courses.

Provides dependency injection for:
- Service instances
- Course error translation
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status

from src.courses.community import CommunityService
from src.courses.creator import CreatorService
from src.courses.service import CourseService


# ==============================================================================
# Service Getters (set by main.py)
# ==============================================================================

_course_service_getter: Callable[[], CourseService] | None = None
_community_service_getter: Callable[[], CommunityService] | None = None
_creator_service_getter: Callable[[], CreatorService] | None = None


def set_course_service_getter(getter: Callable[[], CourseService]) -> None:
    """Set the course service getter function."""
    global _course_service_getter
    _course_service_getter = getter


def set_community_service_getter(getter: Callable[[], CommunityService]) -> None:
    """Set the community service getter function."""
    global _community_service_getter
    _community_service_getter = getter


def set_creator_service_getter(getter: Callable[[], CreatorService]) -> None:
    """Set the creator service getter function."""
    global _creator_service_getter
    _creator_service_getter = getter


def get_course_service() -> CourseService:
    """Get CourseService instance from app state."""
    if _course_service_getter is None:
        msg = "CourseService not configured"
        raise RuntimeError(msg)
    return _course_service_getter()


def get_community_service() -> CommunityService:
    """Get CommunityService instance from app state."""
    if _community_service_getter is None:
        msg = "CommunityService not configured"
        raise RuntimeError(msg)
    return _community_service_getter()


def get_creator_service() -> CreatorService:
    """Get CreatorService instance from app state."""
    if _creator_service_getter is None:
        msg = "CreatorService not configured"
        raise RuntimeError(msg)
    return _creator_service_getter()


# ==============================================================================
# Type Aliases for Dependencies
# ==============================================================================

CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]
CommunityServiceDep = Annotated[CommunityService, Depends(get_community_service)]
CreatorServiceDep = Annotated[CreatorService, Depends(get_creator_service)]


# ==============================================================================
# Error Handling
# ==============================================================================


def handle_course_error(error: Exception) -> HTTPException:
    """Convert course and lesson errors to HTTPException.

    ``kit_required`` carries the kit id so the client can open the shop page.
    """
    status_map = {
        "course_not_found": status.HTTP_404_NOT_FOUND,
        "lesson_not_found": status.HTTP_404_NOT_FOUND,
        "invalid_invite": status.HTTP_404_NOT_FOUND,
        "user_not_found": status.HTTP_404_NOT_FOUND,
        "forbidden": status.HTTP_403_FORBIDDEN,
        "access_denied": status.HTTP_403_FORBIDDEN,
        "kit_not_owned": status.HTTP_403_FORBIDDEN,
        "kit_required": status.HTTP_402_PAYMENT_REQUIRED,
        "self_grant": status.HTTP_400_BAD_REQUEST,
        "database_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    code = getattr(error, "code", "course_error")
    message = getattr(error, "message", str(error))
    status_code = status_map.get(code, status.HTTP_400_BAD_REQUEST)

    if code == "kit_required":
        return HTTPException(
            status_code=status_code,
            detail={
                "error": code,
                "message": message,
                "kit_id": str(error.kit_id),
                "redirect_to": f"/shop/{error.kit_id}",
            },
        )

    return HTTPException(status_code=status_code, detail=message)
