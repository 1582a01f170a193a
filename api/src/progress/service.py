# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Lesson progress service layer."""

from typing import TYPE_CHECKING
from uuid import UUID

from src.core.errors import DatabaseError
from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.lessons.models import CourseType

from .models import LessonProgress, LessonProgressStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class ProgressService:
    """Per-user lesson completion."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute support
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._upsert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (user_id, lesson_id, course_id, course_type, status, completed_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._list_user_progress = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lesson_progress WHERE user_id = ?"
        )

    async def mark_complete(
        self,
        user_id: UUID,
        lesson_id: UUID,
        course_id: UUID,
        course_type: CourseType,
    ) -> LessonProgress:
        """Upsert the lesson as completed now."""
        now = utc_now()
        progress = LessonProgress(
            user_id=user_id,
            lesson_id=lesson_id,
            course_id=course_id,
            course_type=course_type,
            status=LessonProgressStatus.COMPLETED,
            completed_at=now,
            updated_at=now,
        )
        try:
            await self.session.aexecute(
                self._upsert_progress,
                [
                    progress.user_id,
                    progress.lesson_id,
                    progress.course_id,
                    progress.course_type.value,
                    progress.status.value,
                    progress.completed_at,
                    progress.updated_at,
                ],
            )
        except Exception as e:
            logger.exception("database_error_mark_complete", error=str(e))
            raise DatabaseError("Failed to update progress", original_error=e) from e

        logger.info(
            "lesson_completed",
            lesson_id=str(lesson_id),
            course_id=str(course_id),
        )
        return progress

    async def list_user_progress(self, user_id: UUID) -> list[LessonProgress]:
        """All progress rows of a user."""
        result = await self.session.aexecute(self._list_user_progress, [user_id])
        return [LessonProgress.from_row(row) for row in result]

    async def list_course_progress(
        self,
        user_id: UUID,
        course_id: UUID,
    ) -> list[LessonProgress]:
        """Progress rows of a user within one course."""
        return [p for p in await self.list_user_progress(user_id) if p.course_id == course_id]
