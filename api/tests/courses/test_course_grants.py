"""Tests for CourseService grant writes."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from src.core.timeutils import utc_now
from src.courses.models import CourseAccessGrant
from src.courses.service import CourseService


class LwtResult(list):
    def __init__(self, applied: bool):
        super().__init__()
        self.was_applied = applied


@pytest.fixture
def service(mock_session: Mock) -> CourseService:
    return CourseService(mock_session, "electrofun_test")


@pytest.fixture
def grant() -> CourseAccessGrant:
    return CourseAccessGrant(course_id=uuid4(), user_id=uuid4(), granted_by=uuid4())


class TestMarkJoined:
    """Tests for the one-way joined_at stamp."""

    @pytest.mark.asyncio
    async def test_stamp_is_conditional_on_grant_identity(
        self, service: CourseService, mock_session: Mock, grant: CourseAccessGrant
    ) -> None:
        now = utc_now()
        mock_session.aexecute = AsyncMock(return_value=LwtResult(True))

        assert await service.mark_joined(grant, now) is True

        statement, params = mock_session.aexecute.await_args.args
        assert "IF id = ? AND joined_at = null" in statement.query
        assert params == [now, grant.course_id, grant.user_id, grant.id]

    @pytest.mark.asyncio
    async def test_missing_or_replaced_grant_is_not_stamped(
        self, service: CourseService, mock_session: Mock, grant: CourseAccessGrant
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=LwtResult(False))
        assert await service.mark_joined(grant) is False


class TestRevokeGrant:
    @pytest.mark.asyncio
    async def test_revoke_reports_whether_a_grant_existed(
        self, service: CourseService, mock_session: Mock
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=LwtResult(False))
        assert await service.revoke_grant(uuid4(), uuid4()) is False

        mock_session.aexecute = AsyncMock(return_value=LwtResult(True))
        assert await service.revoke_grant(uuid4(), uuid4()) is True
