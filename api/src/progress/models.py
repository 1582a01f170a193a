"""Lesson progress models.

One row per (user, lesson), partitioned by user so the dashboard and the
course pages read a single partition.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.core.timeutils import ensure_utc_aware, utc_now
from src.lessons.models import CourseType


if TYPE_CHECKING:
    from cassandra.cluster import Row


class LessonProgressStatus(str, Enum):
    """Lesson progress status."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    user_id UUID,
    lesson_id UUID,
    course_id UUID,
    course_type TEXT,
    status TEXT,
    completed_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id), lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    LESSON_PROGRESS_TABLE_CQL,
]


@dataclass
class LessonProgress:
    """Progress of one user on one lesson."""

    user_id: UUID
    lesson_id: UUID
    course_id: UUID
    course_type: CourseType
    status: LessonProgressStatus = LessonProgressStatus.NOT_STARTED
    completed_at: datetime | None = None
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: "Row") -> "LessonProgress":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            lesson_id=row.lesson_id,
            course_id=row.course_id,
            course_type=CourseType(row.course_type),
            status=LessonProgressStatus(row.status)
            if row.status
            else LessonProgressStatus.NOT_STARTED,
            completed_at=ensure_utc_aware(row.completed_at),
            updated_at=ensure_utc_aware(row.updated_at) or utc_now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "lesson_id": self.lesson_id,
            "course_id": self.course_id,
            "course_type": self.course_type.value,
            "status": self.status.value,
            "completed_at": self.completed_at,
            "updated_at": self.updated_at,
        }
