"""Tests for lesson progress and the profile dashboard analytics."""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from src.core.errors import DatabaseError
from src.lessons.models import CourseType
from src.progress.dashboard import build_analytics
from src.progress.models import LessonProgress, LessonProgressStatus
from src.progress.service import ProgressService


def row(course_id: UUID, status: LessonProgressStatus) -> LessonProgress:
    return LessonProgress(
        user_id=uuid4(),
        lesson_id=uuid4(),
        course_id=course_id,
        course_type=CourseType.OFFICIAL,
        status=status,
    )


class TestBuildAnalytics:
    """Tests for build_analytics."""

    def test_empty(self) -> None:
        analytics = build_analytics([])
        assert analytics.total_courses == 0
        assert analytics.total_lessons == 0

    def test_completed_and_in_progress_courses(self) -> None:
        done, started = uuid4(), uuid4()
        progress = [
            row(done, LessonProgressStatus.COMPLETED),
            row(done, LessonProgressStatus.COMPLETED),
            row(started, LessonProgressStatus.COMPLETED),
            row(started, LessonProgressStatus.IN_PROGRESS),
        ]

        analytics = build_analytics(progress)

        assert analytics.total_courses == 2
        assert analytics.completed_courses == 1
        assert analytics.in_progress_courses == 1
        assert analytics.total_lessons == 4
        assert analytics.completed_lessons == 3


class TestMarkComplete:
    """Tests for ProgressService.mark_complete."""

    @pytest.mark.asyncio
    async def test_upserts_completed_row(self, mock_session: Mock) -> None:
        service = ProgressService(mock_session, "electrofun_test")
        user_id, lesson_id, course_id = uuid4(), uuid4(), uuid4()

        progress = await service.mark_complete(
            user_id, lesson_id, course_id, CourseType.CUSTOM
        )

        assert progress.status == LessonProgressStatus.COMPLETED
        assert progress.completed_at is not None
        params = mock_session.aexecute.await_args.args[1]
        assert params[:5] == [user_id, lesson_id, course_id, "custom", "completed"]

    @pytest.mark.asyncio
    async def test_store_failure(self, mock_session: Mock) -> None:
        mock_session.aexecute = AsyncMock(side_effect=Exception("timeout"))
        service = ProgressService(mock_session, "electrofun_test")

        with pytest.raises(DatabaseError, match="Failed to update progress"):
            await service.mark_complete(uuid4(), uuid4(), uuid4(), CourseType.OFFICIAL)
