"""Pydantic schemas for lessons."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.lessons.models import HiddenLesson, Lesson, LessonContentType


class CreateLessonRequest(BaseModel):
    """Create lesson request.

    For svelte lessons ``component_props`` is raw JSON text; text that does not
    parse to an object is stored as ``{}``.
    """

    title: str = Field(..., min_length=1, max_length=300)
    content_type: LessonContentType = LessonContentType.TEXT
    content: str | None = None
    svelte_component: str | None = None
    component_props: str | None = None
    order_index: int = Field(1, ge=0)
    estimated_duration: int | None = Field(None, ge=0)


class UpdateLessonRequest(CreateLessonRequest):
    """Update lesson request; omitted content fields are kept."""


class PublishLessonRequest(BaseModel):
    is_published: bool


class LessonVisibilityRequest(BaseModel):
    """Show or hide a lesson for one user."""

    user_id: UUID
    is_visible: bool


class LessonResponse(BaseModel):
    """Lesson details."""

    id: UUID
    course_id: UUID
    course_type: str
    title: str
    content: str | None = None
    content_type: str
    svelte_component: str | None = None
    component_props: dict[str, Any] = Field(default_factory=dict)
    order_index: int
    estimated_duration: int | None = None
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_lesson(cls, lesson: Lesson) -> "LessonResponse":
        return cls(**lesson.to_dict())


class HiddenLessonResponse(BaseModel):
    lesson_id: UUID
    user_id: UUID

    @classmethod
    def from_hidden(cls, hidden: HiddenLesson) -> "HiddenLessonResponse":
        return cls(**hidden.to_dict())
