# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Lesson service layer.

Business logic for:
- Lesson CRUD for official and custom courses
- Per-user visibility overrides (deny-list)
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.core.errors import AppError, DatabaseError
from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.lessons.models import CourseType, HiddenLesson, Lesson, LessonContentType


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


# ==============================================================================
# Exceptions
# ==============================================================================


class LessonError(AppError):
    """Base lesson error."""

    def __init__(self, message: str, code: str = "lesson_error"):
        super().__init__(message, code)


class LessonNotFoundError(LessonError):
    """Lesson not found."""

    def __init__(self, message: str = "Lesson not found"):
        super().__init__(message, "lesson_not_found")


# ==============================================================================
# Lesson Service
# ==============================================================================


class LessonService:
    """Lessons and the per-user visibility deny-list."""

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
        self._insert_lesson = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lessons
            (id, course_id, course_type, title, content, content_type,
             svelte_component, component_props, order_index, estimated_duration,
             is_published, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_lesson = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE id = ?"
        )
        self._get_lessons_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE id IN ?"
        )
        self._list_by_course = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE course_id = ?"
        )
        self._set_published = self.session.prepare(f"""
            UPDATE {self.keyspace}.lessons
            SET is_published = ?, updated_at = ?
            WHERE id = ?
        """)
        self._delete_lesson = self.session.prepare(
            f"DELETE FROM {self.keyspace}.lessons WHERE id = ?"
        )

        # Visibility
        self._hide_lesson = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_user_visibility
            (lesson_id, user_id, is_visible, updated_at)
            VALUES (?, ?, false, ?)
        """)
        self._show_lesson = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lesson_user_visibility
            WHERE lesson_id = ? AND user_id = ?
        """)
        self._hidden_for_user = self.session.prepare(f"""
            SELECT lesson_id, user_id, is_visible
            FROM {self.keyspace}.lesson_user_visibility
            WHERE lesson_id IN ? AND user_id = ?
        """)
        self._hidden_for_lessons = self.session.prepare(f"""
            SELECT lesson_id, user_id, is_visible
            FROM {self.keyspace}.lesson_user_visibility
            WHERE lesson_id IN ?
        """)

    # ==========================================================================
    # Lessons
    # ==========================================================================

    async def create_lesson(
        self,
        course_id: UUID,
        course_type: CourseType,
        title: str,
        content_type: LessonContentType = LessonContentType.TEXT,
        content: str | None = None,
        svelte_component: str | None = None,
        component_props: dict[str, Any] | None = None,
        order_index: int = 1,
        estimated_duration: int | None = None,
    ) -> Lesson:
        """Create an unpublished lesson."""
        now = utc_now()
        lesson = Lesson(
            course_id=course_id,
            course_type=course_type,
            title=title,
            content_type=content_type,
            content=content,
            svelte_component=svelte_component,
            component_props=component_props or {},
            order_index=order_index,
            estimated_duration=estimated_duration,
            is_published=False,
            created_at=now,
            updated_at=now,
        )
        await self._save(lesson, "Failed to create lesson")
        logger.info(
            "lesson_created",
            lesson_id=str(lesson.id),
            course_id=str(course_id),
            course_type=course_type.value,
        )
        return lesson

    async def update_lesson(
        self,
        lesson: Lesson,
        title: str,
        content_type: LessonContentType,
        order_index: int,
        estimated_duration: int | None = None,
        content: str | None = None,
        svelte_component: str | None = None,
        component_props: dict[str, Any] | None = None,
    ) -> Lesson:
        """Update a lesson; content fields left as None keep their value."""
        lesson.title = title
        lesson.content_type = content_type
        lesson.order_index = order_index
        lesson.estimated_duration = estimated_duration
        if content is not None:
            lesson.content = content
        if svelte_component is not None:
            lesson.svelte_component = svelte_component
        if component_props is not None:
            lesson.component_props = component_props
        lesson.updated_at = utc_now()

        await self._save(lesson, "Failed to update lesson")
        logger.info("lesson_updated", lesson_id=str(lesson.id))
        return lesson

    async def _save(self, lesson: Lesson, error_message: str) -> None:
        try:
            await self.session.aexecute(
                self._insert_lesson,
                [
                    lesson.id,
                    lesson.course_id,
                    lesson.course_type.value,
                    lesson.title,
                    lesson.content,
                    lesson.content_type.value,
                    lesson.svelte_component,
                    lesson.props_json(),
                    lesson.order_index,
                    lesson.estimated_duration,
                    lesson.is_published,
                    lesson.created_at,
                    lesson.updated_at,
                ],
            )
        except Exception as e:
            logger.exception("database_error_save_lesson", error=str(e))
            raise DatabaseError(error_message, original_error=e) from e

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        """Get lesson by id."""
        result = await self.session.aexecute(self._get_lesson, [lesson_id])
        if not result:
            return None
        return Lesson.from_row(result[0])

    async def get_lessons(self, lesson_ids: Iterable[UUID]) -> dict[UUID, Lesson]:
        """Get several lessons keyed by id."""
        ids = list(dict.fromkeys(lesson_ids))
        if not ids:
            return {}
        result = await self.session.aexecute(self._get_lessons_by_ids, [ids])
        return {row.id: Lesson.from_row(row) for row in result}

    async def list_course_lessons(
        self,
        course_id: UUID,
        course_type: CourseType,
        published_only: bool = False,
    ) -> list[Lesson]:
        """Lessons of a course ordered by ``order_index``."""
        result = await self.session.aexecute(self._list_by_course, [course_id])
        lessons = [
            lesson
            for lesson in (Lesson.from_row(row) for row in result)
            if lesson.course_type == course_type
            and (lesson.is_published or not published_only)
        ]
        return sorted(lessons, key=lambda lesson: (lesson.order_index, lesson.created_at))

    async def set_published(self, lesson_id: UUID, is_published: bool) -> None:
        """Publish or unpublish a lesson."""
        await self.session.aexecute(
            self._set_published, [is_published, utc_now(), lesson_id]
        )
        logger.info(
            "lesson_publish_toggled",
            lesson_id=str(lesson_id),
            is_published=is_published,
        )

    async def delete_lesson(self, lesson_id: UUID) -> None:
        """Delete a lesson."""
        await self.session.aexecute(self._delete_lesson, [lesson_id])
        logger.info("lesson_deleted", lesson_id=str(lesson_id))

    # ==========================================================================
    # Visibility
    # ==========================================================================

    async def set_visibility(
        self,
        lesson_id: UUID,
        user_id: UUID,
        is_visible: bool,
    ) -> None:
        """Show or hide a lesson for one user.

        Showing removes the deny row, so hide then show returns to the default.
        """
        if is_visible:
            await self.session.aexecute(self._show_lesson, [lesson_id, user_id])
        else:
            await self.session.aexecute(
                self._hide_lesson, [lesson_id, user_id, utc_now()]
            )
        logger.info(
            "lesson_visibility_changed",
            lesson_id=str(lesson_id),
            user_id=str(user_id),
            is_visible=is_visible,
        )

    async def hidden_lesson_ids(
        self,
        lesson_ids: Iterable[UUID],
        user_id: UUID,
    ) -> set[UUID]:
        """Ids among ``lesson_ids`` hidden from ``user_id``."""
        ids = list(dict.fromkeys(lesson_ids))
        if not ids:
            return set()
        result = await self.session.aexecute(self._hidden_for_user, [ids, user_id])
        return {row.lesson_id for row in result if not row.is_visible}

    async def hidden_pairs(self, lesson_ids: Iterable[UUID]) -> list[HiddenLesson]:
        """All deny-list entries for the given lessons."""
        ids = list(dict.fromkeys(lesson_ids))
        if not ids:
            return []
        result = await self.session.aexecute(self._hidden_for_lessons, [ids])
        return [
            HiddenLesson(lesson_id=row.lesson_id, user_id=row.user_id)
            for row in result
            if not row.is_visible
        ]
