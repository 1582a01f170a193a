"""Lesson file upload, deletion and component preview endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import HTMLResponse

from src.auth.dependencies import CurrentProfile
from src.config import get_settings

from .dependencies import LessonFileServiceDep, handle_lesson_file_error
from .preview import (
    FILE_NOT_FOUND_HTML,
    NO_COMPONENT_HTML,
    PREVIEW_HEADERS,
    render_preview,
)
from .schemas import DeleteLessonFileResponse, LessonFileResponse
from .service import LessonFileError


router = APIRouter(prefix="/api/lesson-files", tags=["lesson-files"])
preview_router = APIRouter(prefix="/api/lesson-preview", tags=["lesson-files"])


@router.post(
    "",
    response_model=LessonFileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a lesson file",
)
async def upload_lesson_file(
    profile: CurrentProfile,
    lesson_file_service: LessonFileServiceDep,
    lesson_id: Annotated[UUID, Form()],
    file: Annotated[UploadFile, File(description="Markdown, Svelte or video file")],
    tab_order: Annotated[int, Form()] = 0,
) -> LessonFileResponse:
    """Upload a file to a lesson. Svelte components are compiled on upload."""
    content = await file.read()
    try:
        lesson_file = await lesson_file_service.upload(
            profile=profile,
            lesson_id=lesson_id,
            file_name=file.filename or "",
            content=content,
            content_type=file.content_type,
            tab_order=tab_order,
        )
    except LessonFileError as e:
        raise handle_lesson_file_error(e) from e
    return LessonFileResponse.from_file(lesson_file)


@router.delete(
    "/{file_id}",
    response_model=DeleteLessonFileResponse,
    summary="Delete a lesson file",
)
async def delete_lesson_file(
    file_id: UUID,
    profile: CurrentProfile,
    lesson_file_service: LessonFileServiceDep,
) -> DeleteLessonFileResponse:
    try:
        await lesson_file_service.delete(profile, file_id)
    except LessonFileError as e:
        raise handle_lesson_file_error(e) from e
    return DeleteLessonFileResponse()


@preview_router.get(
    "/{file_id}",
    response_class=HTMLResponse,
    summary="Preview a compiled component",
)
async def preview_lesson_file(
    file_id: UUID,
    lesson_file_service: LessonFileServiceDep,
) -> HTMLResponse:
    """Sandbox page that mounts the compiled component from its public URL."""
    lesson_file = await lesson_file_service.get_file(file_id)
    if lesson_file is None:
        return HTMLResponse(FILE_NOT_FOUND_HTML, status_code=status.HTTP_404_NOT_FOUND)

    compiled_url = lesson_file_service.preview_url(lesson_file)
    if compiled_url is None:
        return HTMLResponse(NO_COMPONENT_HTML, status_code=status.HTTP_400_BAD_REQUEST)

    return HTMLResponse(
        render_preview(compiled_url, get_settings().svelte_runtime_url),
        headers=PREVIEW_HEADERS,
    )
