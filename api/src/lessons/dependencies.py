"""FastAPI dependencies for lessons."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from src.lessons.service import LessonService


_lesson_service_getter: Callable[[], LessonService] | None = None


def set_lesson_service_getter(getter: Callable[[], LessonService]) -> None:
    """Set the lesson service getter function."""
    global _lesson_service_getter
    _lesson_service_getter = getter


def get_lesson_service() -> LessonService:
    """Get LessonService instance from app state."""
    if _lesson_service_getter is None:
        msg = "LessonService not configured"
        raise RuntimeError(msg)
    return _lesson_service_getter()


LessonServiceDep = Annotated[LessonService, Depends(get_lesson_service)]
