"""FastAPI dependencies for lesson files."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status

from src.lesson_files.service import LessonFileService


_lesson_file_service_getter: Callable[[], LessonFileService] | None = None


def set_lesson_file_service_getter(getter: Callable[[], LessonFileService]) -> None:
    """Set the lesson file service getter function."""
    global _lesson_file_service_getter
    _lesson_file_service_getter = getter


def get_lesson_file_service() -> LessonFileService:
    """Get LessonFileService instance from app state."""
    if _lesson_file_service_getter is None:
        msg = "LessonFileService not configured"
        raise RuntimeError(msg)
    return _lesson_file_service_getter()


LessonFileServiceDep = Annotated[LessonFileService, Depends(get_lesson_file_service)]


def handle_lesson_file_error(error: Exception) -> HTTPException:
    """Convert lesson file errors to HTTPException."""
    status_map = {
        "unsupported_file_type": status.HTTP_400_BAD_REQUEST,
        "lesson_not_found": status.HTTP_404_NOT_FOUND,
        "file_not_found": status.HTTP_404_NOT_FOUND,
        "forbidden": status.HTTP_403_FORBIDDEN,
        "compile_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
        "file_too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        "storage_failed": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }

    code = getattr(error, "code", "lesson_file_error")
    message = getattr(error, "message", str(error))

    return HTTPException(
        status_code=status_map.get(code, status.HTTP_400_BAD_REQUEST),
        detail=message,
    )
