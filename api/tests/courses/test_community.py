"""Tests for community course access, enrollment and lesson visibility."""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from src.courses.community import CommunityService
from src.courses.dependencies import handle_course_error
from src.courses.models import CourseAccess, CourseAccessGrant, CustomCourse
from src.courses.service import (
    CourseAccessDeniedError,
    CourseNotFoundError,
    InvalidInviteError,
    KitRequiredError,
)
from src.lessons.models import CourseType, Lesson
from src.lessons.service import LessonNotFoundError


class FakeCourseStore:
    """In-memory custom courses and access grants keyed by (course, user)."""

    def __init__(self):
        self.courses: dict[UUID, CustomCourse] = {}
        self.grants: dict[tuple[UUID, UUID], CourseAccessGrant] = {}

    async def get_custom_course(self, course_id):
        return self.courses.get(course_id)

    async def get_course_by_invite_token(self, token):
        return next(
            (c for c in self.courses.values() if c.invite_token == token), None
        )

    async def get_grant(self, course_id, user_id):
        return self.grants.get((course_id, user_id))

    async def create_grant(self, course_id, user_id, granted_by, joined_at=None):
        if (course_id, user_id) in self.grants:
            return False
        self.grants[(course_id, user_id)] = CourseAccessGrant(
            course_id=course_id,
            user_id=user_id,
            granted_by=granted_by,
            joined_at=joined_at,
        )
        return True

    async def mark_joined(self, grant, now=None):
        stored = self.grants.get((grant.course_id, grant.user_id))
        if stored is None or stored.id != grant.id or stored.joined_at is not None:
            return False
        stored.joined_at = now
        return True

    async def check_course_access(self, course, user_id):
        is_creator = course.is_creator(user_id)
        grant = None if is_creator else self.grants.get((course.id, user_id))
        return CourseAccess(
            is_creator=is_creator,
            has_access=is_creator or course.is_public or grant is not None,
            grant=grant,
        )


@pytest.fixture
def creator_id() -> UUID:
    return uuid4()


@pytest.fixture
def course(creator_id: UUID) -> CustomCourse:
    return CustomCourse(
        creator_id=creator_id,
        kit_id=uuid4(),
        title="Blinking LEDs",
        is_published=True,
    )


@pytest.fixture
def lessons(course: CustomCourse) -> list[Lesson]:
    return [
        Lesson(
            course_id=course.id,
            course_type=CourseType.CUSTOM,
            title=f"Lesson {i}",
            order_index=i,
            is_published=True,
        )
        for i in range(3)
    ]


@pytest.fixture
def store(course: CustomCourse) -> FakeCourseStore:
    store = FakeCourseStore()
    store.courses[course.id] = course
    return store


@pytest.fixture
def lesson_service(lessons: list[Lesson]) -> Mock:
    service = Mock()
    service.list_course_lessons = AsyncMock(return_value=lessons)
    service.hidden_lesson_ids = AsyncMock(return_value=set())
    return service


@pytest.fixture
def entitlement_service() -> Mock:
    service = Mock()
    service.has_kit_access = AsyncMock(return_value=True)
    return service


@pytest.fixture
def community(
    store: FakeCourseStore, lesson_service: Mock, entitlement_service: Mock
) -> CommunityService:
    progress = Mock()
    progress.list_course_progress = AsyncMock(return_value=[])
    progress.mark_complete = AsyncMock()
    return CommunityService(store, lesson_service, entitlement_service, progress, Mock())


class TestJoinByInvite:
    """Tests for invite link enrollment."""

    @pytest.mark.asyncio
    async def test_join_twice_creates_one_grant(
        self, community: CommunityService, store: FakeCourseStore, course: CustomCourse
    ) -> None:
        user_id = uuid4()

        first = await community.join_by_invite(course.invite_token, user_id)
        second = await community.join_by_invite(course.invite_token, user_id)

        assert first.created is True
        assert second.created is False
        assert list(store.grants) == [(course.id, user_id)]
        assert store.grants[(course.id, user_id)].joined_at is not None

    @pytest.mark.asyncio
    async def test_existing_grant_gets_joined_at(
        self, community: CommunityService, store: FakeCourseStore, course: CustomCourse
    ) -> None:
        user_id = uuid4()
        await store.create_grant(course.id, user_id, granted_by=course.creator_id)

        await community.join_by_invite(course.invite_token, user_id)

        assert len(store.grants) == 1
        assert store.grants[(course.id, user_id)].joined_at is not None

    @pytest.mark.asyncio
    async def test_creator_is_not_granted(
        self,
        community: CommunityService,
        store: FakeCourseStore,
        course: CustomCourse,
        creator_id: UUID,
    ) -> None:
        result = await community.join_by_invite(course.invite_token, creator_id)
        assert result.is_creator is True
        assert store.grants == {}

    @pytest.mark.asyncio
    async def test_unknown_token(self, community: CommunityService) -> None:
        with pytest.raises(InvalidInviteError):
            await community.join_by_invite("0" * 32, uuid4())


class TestAccessGates:
    """Tests for the allow-list and kit gates on a community course."""

    @pytest.mark.asyncio
    async def test_private_course_without_grant(
        self, community: CommunityService, course: CustomCourse
    ) -> None:
        with pytest.raises(CourseAccessDeniedError):
            await community.view_course(course.id, uuid4())

    @pytest.mark.asyncio
    async def test_unpublished_course_not_found(
        self, community: CommunityService, course: CustomCourse, creator_id: UUID
    ) -> None:
        course.is_published = False
        with pytest.raises(CourseNotFoundError):
            await community.view_course(course.id, creator_id)

    @pytest.mark.asyncio
    async def test_kit_required(
        self,
        community: CommunityService,
        store: FakeCourseStore,
        entitlement_service: Mock,
        course: CustomCourse,
    ) -> None:
        user_id = uuid4()
        await store.create_grant(course.id, user_id, granted_by=course.creator_id)
        entitlement_service.has_kit_access = AsyncMock(return_value=False)

        with pytest.raises(KitRequiredError) as exc_info:
            await community.view_course(course.id, user_id)

        assert exc_info.value.kit_id == course.kit_id
        assert store.grants[(course.id, user_id)].joined_at is None

    @pytest.mark.asyncio
    async def test_creator_bypasses_kit_gate(
        self,
        community: CommunityService,
        entitlement_service: Mock,
        course: CustomCourse,
        creator_id: UUID,
    ) -> None:
        entitlement_service.has_kit_access = AsyncMock(return_value=False)

        view = await community.view_course(course.id, creator_id)

        assert view.is_creator is True
        entitlement_service.has_kit_access.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_access_stamps_joined_at(
        self, community: CommunityService, store: FakeCourseStore, course: CustomCourse
    ) -> None:
        user_id = uuid4()
        await store.create_grant(course.id, user_id, granted_by=course.creator_id)

        await community.view_course(course.id, user_id)

        assert store.grants[(course.id, user_id)].joined_at is not None

    @pytest.mark.asyncio
    async def test_grant_revoked_after_read_is_not_recreated(
        self, community: CommunityService, store: FakeCourseStore, course: CustomCourse
    ) -> None:
        user_id = uuid4()
        await store.create_grant(course.id, user_id, granted_by=course.creator_id)
        read_access = store.check_course_access

        async def read_then_revoke(checked_course, checked_user):
            access = await read_access(checked_course, checked_user)
            del store.grants[(course.id, user_id)]
            return access

        store.check_course_access = read_then_revoke

        await community.view_course(course.id, user_id)

        assert (course.id, user_id) not in store.grants

    @pytest.mark.asyncio
    async def test_public_course_needs_only_the_kit(
        self, community: CommunityService, course: CustomCourse
    ) -> None:
        course.is_public = True
        view = await community.view_course(course.id, uuid4())
        assert view.course.id == course.id


class TestHiddenLessons:
    """Per-user lesson hiding."""

    @pytest.mark.asyncio
    async def test_hidden_lesson_removed_for_student(
        self,
        community: CommunityService,
        lesson_service: Mock,
        course: CustomCourse,
        lessons: list[Lesson],
    ) -> None:
        course.is_public = True
        lesson_service.hidden_lesson_ids = AsyncMock(return_value={lessons[1].id})
        user_id = uuid4()

        view = await community.view_course(course.id, user_id)
        assert [lesson.id for lesson in view.lessons] == [lessons[0].id, lessons[2].id]

        with pytest.raises(LessonNotFoundError):
            await community.view_lesson(course.id, lessons[1].id, user_id)

    @pytest.mark.asyncio
    async def test_creator_sees_every_lesson(
        self,
        community: CommunityService,
        lesson_service: Mock,
        course: CustomCourse,
        lessons: list[Lesson],
        creator_id: UUID,
    ) -> None:
        lesson_service.hidden_lesson_ids = AsyncMock(return_value={lessons[0].id})
        view = await community.view_course(course.id, creator_id)
        assert len(view.lessons) == 3


class TestHandleCourseError:
    """Tests for the course error to HTTP mapping."""

    def test_kit_required_is_402_with_shop_redirect(self) -> None:
        kit_id = uuid4()
        exc = handle_course_error(KitRequiredError(kit_id))
        assert exc.status_code == 402
        assert exc.detail["kit_id"] == str(kit_id)
        assert exc.detail["redirect_to"] == f"/shop/{kit_id}"

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (CourseNotFoundError(), 404),
            (CourseAccessDeniedError(), 403),
            (InvalidInviteError(), 404),
            (LessonNotFoundError(), 404),
        ],
    )
    def test_status_codes(self, error: Exception, status_code: int) -> None:
        assert handle_course_error(error).status_code == status_code
