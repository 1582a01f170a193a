"""Pydantic schemas for lesson files."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.lesson_files.models import LessonFile


class LessonFileResponse(BaseModel):
    """Lesson file row."""

    id: UUID
    lesson_id: UUID
    file_name: str
    file_type: str
    storage_path: str
    compiled_path: str | None = None
    tab_order: int
    created_at: datetime

    @classmethod
    def from_file(cls, lesson_file: LessonFile) -> "LessonFileResponse":
        return cls(**lesson_file.to_dict())


class DeleteLessonFileResponse(BaseModel):
    success: bool = True
