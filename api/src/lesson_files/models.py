"""Lesson file models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from src.core.timeutils import ensure_utc_aware, utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Row


class LessonFileType(str, Enum):
    MARKDOWN = "markdown"
    VIDEO = "video"
    SVELTE = "svelte"


VIDEO_EXTENSIONS = frozenset({"mp4", "webm", "ogg", "mov", "avi"})

UNSUPPORTED_FILE_TYPE_MESSAGE = (
    "Unsupported file type. Allowed: .md, .svelte, .mp4, .webm, .ogg, .mov, .avi"
)


def file_type_for(file_name: str) -> LessonFileType | None:
    """Map a file name to its lesson file type by extension."""
    ext = PurePosixPath(file_name).suffix.lower().lstrip(".")
    if ext == "md":
        return LessonFileType.MARKDOWN
    if ext == "svelte":
        return LessonFileType.SVELTE
    if ext in VIDEO_EXTENSIONS:
        return LessonFileType.VIDEO
    return None


LESSON_FILES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_files (
    id UUID PRIMARY KEY,
    lesson_id UUID,
    file_name TEXT,
    file_type TEXT,
    storage_path TEXT,
    compiled_path TEXT,
    tab_order INT,
    created_at TIMESTAMP
)
"""

LESSON_FILES_LESSON_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS lesson_files_lesson_id_idx ON {keyspace}.lesson_files (lesson_id)
"""

LESSON_FILES_TABLES_CQL = [
    LESSON_FILES_TABLE_CQL,
    LESSON_FILES_LESSON_INDEX_CQL,
]


@dataclass
class LessonFile:
    """Stored lesson asset shown as a tab on the lesson page."""

    lesson_id: UUID
    file_name: str
    file_type: LessonFileType
    id: UUID = field(default_factory=uuid4)
    storage_path: str = ""
    compiled_path: str | None = None
    tab_order: int = 0
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.storage_path:
            self.storage_path = f"{self.lesson_id}/{self.id}/{self.file_name}"

    @property
    def compiled_target(self) -> str:
        """Where the compiled component of a svelte file is stored."""
        return f"{self.lesson_id}/{self.id}/compiled.js"

    @property
    def stored_paths(self) -> list[str]:
        paths = [self.storage_path]
        if self.compiled_path:
            paths.append(self.compiled_path)
        return paths

    @classmethod
    def from_row(cls, row: "Row") -> "LessonFile":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            lesson_id=row.lesson_id,
            file_name=row.file_name,
            file_type=LessonFileType(row.file_type),
            storage_path=row.storage_path,
            compiled_path=row.compiled_path,
            tab_order=row.tab_order or 0,
            created_at=ensure_utc_aware(row.created_at) or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "lesson_id": self.lesson_id,
            "file_name": self.file_name,
            "file_type": self.file_type.value,
            "storage_path": self.storage_path,
            "compiled_path": self.compiled_path,
            "tab_order": self.tab_order,
            "created_at": self.created_at,
        }
