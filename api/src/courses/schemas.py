"""Pydantic schemas for courses.

Request and response models for:
- Official courses (admin)
- Community courses: catalog, course and lesson pages, invite joins
- The community course editor (lessons, grants, visibility)
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.courses.creator import CourseEditorView, GrantWithProfile
from src.courses.models import CustomCourse, OfficialCourse
from src.kits.schemas import KitResponse
from src.lesson_files.schemas import LessonFileResponse
from src.lessons.schemas import HiddenLessonResponse, LessonResponse
from src.progress.schemas import LessonProgressResponse


# ==============================================================================
# Official Courses
# ==============================================================================


class CreateOfficialCourseRequest(BaseModel):
    """Create official course request."""

    kit_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    theme: str = ""
    level: int = Field(1, ge=0)
    estimated_duration: int | None = Field(None, ge=0)
    is_published: bool = False


class OfficialCourseResponse(BaseModel):
    """Official course details."""

    id: UUID
    kit_id: UUID
    title: str
    description: str
    theme: str
    level: int
    estimated_duration: int | None = None
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_course(cls, course: OfficialCourse) -> "OfficialCourseResponse":
        return cls(**course.to_dict())


class AdminCourseDetailResponse(BaseModel):
    """Official course with its kit, lessons and lesson files."""

    course: OfficialCourseResponse
    kit: KitResponse | None = None
    lessons: list[LessonResponse] = Field(default_factory=list)
    lesson_files: dict[UUID, list[LessonFileResponse]] = Field(default_factory=dict)


# ==============================================================================
# Community Courses
# ==============================================================================


class CreateCustomCourseRequest(BaseModel):
    """Create community course request."""

    kit_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(Decimal("0"), ge=0)
    is_public: bool = False
    estimated_duration: int | None = Field(None, ge=0)


class UpdateCustomCourseRequest(BaseModel):
    """Update community course request."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(Decimal("0"), ge=0)
    is_public: bool = False
    is_published: bool = False
    estimated_duration: int | None = Field(None, ge=0)


class CustomCourseResponse(BaseModel):
    """Community course as students see it."""

    id: UUID
    creator_id: UUID
    kit_id: UUID
    title: str
    description: str
    price: Decimal
    estimated_duration: int | None = None
    is_public: bool
    is_published: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_course(cls, course: CustomCourse) -> "CustomCourseResponse":
        data = course.to_dict()
        data.pop("invite_token")
        return cls(**data)


class CreatorCourseResponse(CustomCourseResponse):
    """Community course as its creator sees it, invite token included."""

    invite_token: str

    @classmethod
    def from_course(cls, course: CustomCourse) -> "CreatorCourseResponse":
        return cls(**course.to_dict())


class CourseCatalogResponse(BaseModel):
    """Courses page data."""

    kits: list[KitResponse] = Field(default_factory=list)
    official_courses: list[OfficialCourseResponse] = Field(default_factory=list)
    custom_courses: list[CustomCourseResponse] = Field(default_factory=list)
    user_courses: list[CreatorCourseResponse] = Field(default_factory=list)
    user_kits: list[UUID] = Field(default_factory=list)
    selected_kit: UUID | None = None
    can_create_courses: bool = False


class CommunityCourseResponse(BaseModel):
    """Community course page."""

    course: CustomCourseResponse
    lessons: list[LessonResponse]
    user_progress: list[LessonProgressResponse] = Field(default_factory=list)
    is_creator: bool = False


class CommunityLessonResponse(BaseModel):
    """Community lesson page."""

    course: CustomCourseResponse
    lessons: list[LessonResponse]
    lesson: LessonResponse
    lesson_content: Any = None
    user_progress: list[LessonProgressResponse] = Field(default_factory=list)


class JoinCourseResponse(BaseModel):
    """Invite join outcome; creators are sent to the editor."""

    course_id: UUID
    is_creator: bool = False
    redirect_to: str


# ==============================================================================
# Course Editor
# ==============================================================================


class CreateCreatorLessonRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    order_index: int = Field(1, ge=0)
    estimated_duration: int | None = Field(None, ge=0)


class GrantAccessRequest(BaseModel):
    """Grant access to a registered user by email."""

    email: str = Field(..., min_length=1, max_length=320)


class AccessGrantResponse(BaseModel):
    """Grant joined with the grantee's profile."""

    id: UUID
    course_id: UUID
    user_id: UUID
    granted_by: UUID
    created_at: datetime
    joined_at: datetime | None = None
    full_name: str | None = None
    email: str | None = None

    @classmethod
    def from_grant(cls, item: GrantWithProfile) -> "AccessGrantResponse":
        return cls(
            **item.grant.to_dict(),
            full_name=item.profile.full_name if item.profile else None,
            email=item.profile.email if item.profile else None,
        )


class CourseEditorResponse(BaseModel):
    """Course editor page."""

    course: CreatorCourseResponse
    lessons: list[LessonResponse]
    lesson_files: dict[UUID, list[LessonFileResponse]] = Field(default_factory=dict)
    access_grants: list[AccessGrantResponse] = Field(default_factory=list)
    hidden_pairs: list[HiddenLessonResponse] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: CourseEditorView) -> "CourseEditorResponse":
        return cls(
            course=CreatorCourseResponse.from_course(view.course),
            lessons=[LessonResponse.from_lesson(lesson) for lesson in view.lessons],
            lesson_files={
                lesson_id: [LessonFileResponse.from_file(f) for f in files]
                for lesson_id, files in view.lesson_files.items()
            },
            access_grants=[AccessGrantResponse.from_grant(g) for g in view.access_grants],
            hidden_pairs=[HiddenLessonResponse.from_hidden(h) for h in view.hidden_pairs],
        )


class InviteTokenResponse(BaseModel):
    success: bool = True
    invite_token: str


class MessageResponse(BaseModel):
    """Generic success message."""

    success: bool = True
    message: str | None = None
