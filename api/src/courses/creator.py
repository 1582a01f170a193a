"""Community course authoring.

Every operation here is restricted to the course's creator: course settings,
lessons, the access allow-list, the invite token and per-user lesson
visibility.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from src.core.logging import get_logger
from src.courses.models import CourseAccessGrant, CustomCourse
from src.courses.service import (
    CourseForbiddenError,
    CourseNotFoundError,
    GranteeNotFoundError,
    KitNotOwnedError,
    SelfGrantError,
)
from src.lessons.models import CourseType, HiddenLesson, Lesson, LessonContentType
from src.lessons.service import LessonNotFoundError


if TYPE_CHECKING:
    from src.auth.models import Profile
    from src.auth.service import ProfileService
    from src.courses.service import CourseService
    from src.entitlements.service import EntitlementService
    from src.lesson_files.models import LessonFile
    from src.lesson_files.service import LessonFileService
    from src.lessons.service import LessonService


logger = get_logger(__name__)


@dataclass
class GrantWithProfile:
    grant: CourseAccessGrant
    profile: "Profile | None" = None


@dataclass
class CourseEditorView:
    """Everything the course editor page shows."""

    course: CustomCourse
    lessons: list[Lesson]
    lesson_files: dict[UUID, list["LessonFile"]] = field(default_factory=dict)
    access_grants: list[GrantWithProfile] = field(default_factory=list)
    hidden_pairs: list[HiddenLesson] = field(default_factory=list)


class CreatorService:
    """Creator-only operations on community courses."""

    def __init__(
        self,
        course_service: "CourseService",
        lesson_service: "LessonService",
        lesson_file_service: "LessonFileService",
        entitlement_service: "EntitlementService",
        profile_service: "ProfileService",
    ):
        self.courses = course_service
        self.lessons = lesson_service
        self.files = lesson_file_service
        self.entitlements = entitlement_service
        self.profiles = profile_service

    async def get_owned_course(self, course_id: UUID, user_id: UUID) -> CustomCourse:
        """Load a course the caller created.

        Raises:
            CourseNotFoundError: Course does not exist
            CourseForbiddenError: Caller is not the creator
        """
        course = await self.courses.get_custom_course(course_id)
        if course is None:
            raise CourseNotFoundError
        if not course.is_creator(user_id):
            raise CourseForbiddenError
        return course

    async def _get_owned_lesson(self, course: CustomCourse, lesson_id: UUID) -> Lesson:
        lesson = await self.lessons.get_lesson(lesson_id)
        if (
            lesson is None
            or lesson.course_id != course.id
            or lesson.course_type != CourseType.CUSTOM
        ):
            raise LessonNotFoundError
        return lesson

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def list_creator_kits(self, user_id: UUID) -> list[UUID]:
        """Kits the caller may author courses for."""
        return await self.entitlements.list_user_kit_ids(user_id)

    async def create_course(
        self,
        user_id: UUID,
        kit_id: UUID,
        title: str,
        description: str = "",
        price: Decimal = Decimal("0"),
        is_public: bool = False,
        estimated_duration: int | None = None,
    ) -> CustomCourse:
        """Create a draft course for a kit the caller owns.

        Raises:
            KitNotOwnedError: Caller has no access to the kit
        """
        if not await self.entitlements.has_kit_access(user_id, kit_id):
            raise KitNotOwnedError
        return await self.courses.create_custom_course(
            creator_id=user_id,
            kit_id=kit_id,
            title=title,
            description=description,
            price=price,
            is_public=is_public,
            estimated_duration=estimated_duration,
        )

    async def update_course(
        self,
        course_id: UUID,
        user_id: UUID,
        title: str,
        description: str,
        price: Decimal,
        is_public: bool,
        is_published: bool,
        estimated_duration: int | None,
    ) -> CustomCourse:
        course = await self.get_owned_course(course_id, user_id)
        return await self.courses.update_custom_course(
            course,
            title=title,
            description=description,
            price=price,
            is_public=is_public,
            is_published=is_published,
            estimated_duration=estimated_duration,
        )

    async def get_editor(self, course_id: UUID, user_id: UUID) -> CourseEditorView:
        """Course editor data: all lessons, their files, grants and deny-list."""
        course = await self.get_owned_course(course_id, user_id)
        lessons = await self.lessons.list_course_lessons(course.id, CourseType.CUSTOM)
        lesson_ids = [lesson.id for lesson in lessons]

        grants = await self.courses.list_grants(course.id)
        profiles = await self.profiles.get_profiles(g.user_id for g in grants)

        return CourseEditorView(
            course=course,
            lessons=lessons,
            lesson_files=await self.files.list_for_lessons(lesson_ids),
            access_grants=[
                GrantWithProfile(grant=g, profile=profiles.get(g.user_id)) for g in grants
            ],
            hidden_pairs=await self.lessons.hidden_pairs(lesson_ids),
        )

    async def regenerate_invite_token(self, course_id: UUID, user_id: UUID) -> str:
        course = await self.get_owned_course(course_id, user_id)
        return await self.courses.regenerate_invite_token(course)

    # ==========================================================================
    # Lessons
    # ==========================================================================

    async def create_lesson(
        self,
        course_id: UUID,
        user_id: UUID,
        title: str,
        order_index: int = 1,
        estimated_duration: int | None = None,
    ) -> Lesson:
        """Add an unpublished text lesson."""
        course = await self.get_owned_course(course_id, user_id)
        return await self.lessons.create_lesson(
            course_id=course.id,
            course_type=CourseType.CUSTOM,
            title=title,
            content_type=LessonContentType.TEXT,
            order_index=order_index,
            estimated_duration=estimated_duration,
        )

    async def delete_lesson(self, course_id: UUID, user_id: UUID, lesson_id: UUID) -> None:
        course = await self.get_owned_course(course_id, user_id)
        lesson = await self._get_owned_lesson(course, lesson_id)
        await self.lessons.delete_lesson(lesson.id)

    async def set_lesson_published(
        self,
        course_id: UUID,
        user_id: UUID,
        lesson_id: UUID,
        is_published: bool,
    ) -> None:
        course = await self.get_owned_course(course_id, user_id)
        lesson = await self._get_owned_lesson(course, lesson_id)
        await self.lessons.set_published(lesson.id, is_published)

    async def set_lesson_visibility(
        self,
        course_id: UUID,
        user_id: UUID,
        lesson_id: UUID,
        target_user_id: UUID,
        is_visible: bool,
    ) -> None:
        """Hide a lesson from one student, or show it again."""
        course = await self.get_owned_course(course_id, user_id)
        lesson = await self._get_owned_lesson(course, lesson_id)
        await self.lessons.set_visibility(lesson.id, target_user_id, is_visible)

    # ==========================================================================
    # Access grants
    # ==========================================================================

    async def grant_access_by_email(
        self,
        course_id: UUID,
        user_id: UUID,
        email: str,
    ) -> str:
        """Grant a registered user access; an existing grant is left as is.

        Returns:
            Confirmation message naming the grantee

        Raises:
            GranteeNotFoundError: No profile with that email
            SelfGrantError: Caller granted themselves
        """
        course = await self.get_owned_course(course_id, user_id)
        email = email.strip().lower()

        grantee = await self.profiles.get_profile_by_email(email)
        if grantee is None:
            raise GranteeNotFoundError
        if grantee.id == user_id:
            raise SelfGrantError

        await self.courses.create_grant(
            course_id=course.id,
            user_id=grantee.id,
            granted_by=user_id,
        )
        return f"Access granted to {grantee.full_name or email}"

    async def revoke_access(
        self,
        course_id: UUID,
        user_id: UUID,
        grantee_id: UUID,
    ) -> bool:
        """Remove a user's grant. Returns False if they had none."""
        course = await self.get_owned_course(course_id, user_id)
        return await self.courses.revoke_grant(course.id, grantee_id)
