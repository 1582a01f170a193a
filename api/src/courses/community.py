"""Community course catalog, viewing and enrollment.

Business logic for:
- The course catalog (official and public community courses of owned kits)
- The two access gates on a community course: the allow-list and the kit
- First-access ``joined_at`` stamping and invite-link joins
- Lesson completion
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from src.core.logging import get_logger
from src.core.timeutils import utc_now
from src.courses.models import CourseAccess, CustomCourse, OfficialCourse
from src.courses.service import (
    CourseAccessDeniedError,
    CourseNotFoundError,
    InvalidInviteError,
    KitRequiredError,
)
from src.lessons.content import parse_lesson_content
from src.lessons.models import CourseType, Lesson
from src.lessons.service import LessonNotFoundError


if TYPE_CHECKING:
    from src.courses.service import CourseService
    from src.entitlements.service import EntitlementService
    from src.kits.models import Kit
    from src.kits.service import KitService
    from src.lessons.service import LessonService
    from src.progress.models import LessonProgress
    from src.progress.service import ProgressService


logger = get_logger(__name__)


@dataclass
class CourseCatalog:
    kits: list["Kit"]
    official_courses: list[OfficialCourse]
    custom_courses: list[CustomCourse]
    user_courses: list[CustomCourse]
    user_kits: list[UUID]
    selected_kit: UUID | None = None

    @property
    def can_create_courses(self) -> bool:
        return bool(self.user_kits)


@dataclass
class CommunityCourseView:
    course: CustomCourse
    lessons: list[Lesson]
    user_progress: list["LessonProgress"]
    is_creator: bool = False


@dataclass
class CommunityLessonView:
    course: CustomCourse
    lessons: list[Lesson]
    lesson: Lesson
    lesson_content: Any
    user_progress: list["LessonProgress"] = field(default_factory=list)


@dataclass
class JoinResult:
    """Outcome of following an invite link."""

    course: CustomCourse
    is_creator: bool = False
    created: bool = False


class CommunityService:
    """Read and enrollment paths for community courses."""

    def __init__(
        self,
        course_service: "CourseService",
        lesson_service: "LessonService",
        entitlement_service: "EntitlementService",
        progress_service: "ProgressService",
        kit_service: "KitService",
    ):
        self.courses = course_service
        self.lessons = lesson_service
        self.entitlements = entitlement_service
        self.progress = progress_service
        self.kits = kit_service

    # ==========================================================================
    # Catalog
    # ==========================================================================

    async def list_catalog(
        self,
        user_id: UUID | None,
        selected_kit: UUID | None = None,
    ) -> CourseCatalog:
        """Courses page data.

        With a selected kit the catalog shows that kit's courses; otherwise
        the courses of every kit the user owns (nothing for anonymous users
        or users without kits).
        """
        kits = await self.kits.list_kits()
        user_kits: list[UUID] = []
        if user_id is not None:
            user_kits = await self.entitlements.list_user_kit_ids(user_id)

        catalog_kits = [selected_kit] if selected_kit is not None else user_kits
        official = await self.courses.list_official_courses_for_kits(catalog_kits)
        custom = await self.courses.list_public_courses_for_kits(catalog_kits)

        user_courses: list[CustomCourse] = []
        if user_id is not None and user_kits:
            user_courses = await self.courses.list_creator_courses(user_id)

        return CourseCatalog(
            kits=kits,
            official_courses=official,
            custom_courses=custom,
            user_courses=user_courses,
            user_kits=user_kits,
            selected_kit=selected_kit,
        )

    # ==========================================================================
    # Access gates
    # ==========================================================================

    async def _enter_course(
        self,
        course_id: UUID,
        user_id: UUID,
        now: datetime | None = None,
    ) -> tuple[CustomCourse, CourseAccess]:
        """Apply both gates and stamp the first access.

        Raises:
            CourseNotFoundError: Course missing or unpublished
            CourseAccessDeniedError: Private course without a grant
            KitRequiredError: Non-creator who does not own the course's kit
        """
        course = await self.courses.get_custom_course(course_id)
        if course is None or not course.is_published:
            raise CourseNotFoundError

        access = await self.courses.check_course_access(course, user_id)
        if not access.has_access:
            logger.info(
                "community_course_access_denied",
                course_id=str(course_id),
                user_id=str(user_id),
            )
            raise CourseAccessDeniedError

        if access.is_creator:
            return course, access

        if not await self.entitlements.has_kit_access(user_id, course.kit_id, now):
            raise KitRequiredError(course.kit_id)

        if access.grant is not None and access.grant.joined_at is None:
            await self.courses.mark_joined(access.grant, now or utc_now())

        return course, access

    async def _visible_lessons(
        self,
        course: CustomCourse,
        user_id: UUID,
        is_creator: bool,
    ) -> list[Lesson]:
        lessons = await self.lessons.list_course_lessons(
            course.id, CourseType.CUSTOM, published_only=True
        )
        if is_creator or not lessons:
            return lessons
        hidden = await self.lessons.hidden_lesson_ids(
            [lesson.id for lesson in lessons], user_id
        )
        return [lesson for lesson in lessons if lesson.id not in hidden]

    # ==========================================================================
    # Views
    # ==========================================================================

    async def view_course(
        self,
        course_id: UUID,
        user_id: UUID,
        now: datetime | None = None,
    ) -> CommunityCourseView:
        """Course page: published lessons minus the caller's hidden ones."""
        course, access = await self._enter_course(course_id, user_id, now)
        lessons = await self._visible_lessons(course, user_id, access.is_creator)
        progress = await self.progress.list_course_progress(user_id, course.id)
        return CommunityCourseView(
            course=course,
            lessons=lessons,
            user_progress=progress,
            is_creator=access.is_creator,
        )

    async def view_lesson(
        self,
        course_id: UUID,
        lesson_id: UUID,
        user_id: UUID,
        now: datetime | None = None,
    ) -> CommunityLessonView:
        """Lesson page; a lesson hidden from the caller is not found.

        Raises:
            LessonNotFoundError: Lesson not among the caller's visible lessons
        """
        course, access = await self._enter_course(course_id, user_id, now)
        lessons = await self._visible_lessons(course, user_id, access.is_creator)
        lesson = next((item for item in lessons if item.id == lesson_id), None)
        if lesson is None:
            raise LessonNotFoundError

        progress = await self.progress.list_course_progress(user_id, course.id)
        return CommunityLessonView(
            course=course,
            lessons=lessons,
            lesson=lesson,
            lesson_content=parse_lesson_content(lesson),
            user_progress=progress,
        )

    async def mark_complete(
        self,
        course_id: UUID,
        lesson_id: UUID,
        user_id: UUID,
    ) -> "LessonProgress":
        """Mark a visible lesson completed for the caller."""
        view = await self.view_lesson(course_id, lesson_id, user_id)
        return await self.progress.mark_complete(
            user_id=user_id,
            lesson_id=view.lesson.id,
            course_id=view.course.id,
            course_type=CourseType.CUSTOM,
        )

    # ==========================================================================
    # Invites
    # ==========================================================================

    async def join_by_invite(
        self,
        token: str,
        user_id: UUID,
        now: datetime | None = None,
    ) -> JoinResult:
        """Enroll the caller through an invite token.

        The grant insert is conditional, so joining twice leaves one grant.
        When the grant already existed only an unset ``joined_at`` is stamped.

        Raises:
            InvalidInviteError: Unknown token
        """
        course = await self.courses.get_course_by_invite_token(token)
        if course is None:
            raise InvalidInviteError

        if course.is_creator(user_id):
            return JoinResult(course=course, is_creator=True)

        joined_at = now or utc_now()
        created = await self.courses.create_grant(
            course_id=course.id,
            user_id=user_id,
            granted_by=course.creator_id,
            joined_at=joined_at,
        )
        if not created:
            grant = await self.courses.get_grant(course.id, user_id)
            if grant is not None and grant.joined_at is None:
                await self.courses.mark_joined(grant, joined_at)

        logger.info(
            "course_invite_followed",
            course_id=str(course.id),
            user_id=str(user_id),
            created=created,
        )
        return JoinResult(course=course, created=created)
