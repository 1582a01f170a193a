"""Course API endpoints.

Provides routes for:
- Catalog: courses of owned kits, community course creation
- Community: course and lesson pages, completion, invite joins
- Creator: the community course editor
- Admin: official courses and their lessons
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from src.auth.dependencies import CatalogAdmin, CurrentUser, OptionalUser
from src.core.errors import AppError
from src.kits.dependencies import KitServiceDep
from src.kits.schemas import KitResponse
from src.lesson_files.dependencies import LessonFileServiceDep
from src.lesson_files.schemas import LessonFileResponse
from src.lessons.content import parse_component_props
from src.lessons.dependencies import LessonServiceDep
from src.lessons.models import CourseType, Lesson, LessonContentType
from src.lessons.schemas import (
    CreateLessonRequest,
    LessonResponse,
    LessonVisibilityRequest,
    PublishLessonRequest,
    UpdateLessonRequest,
)
from src.progress.schemas import LessonProgressResponse

from .dependencies import (
    CommunityServiceDep,
    CourseServiceDep,
    CreatorServiceDep,
    handle_course_error,
)
from .schemas import (
    AdminCourseDetailResponse,
    CommunityCourseResponse,
    CommunityLessonResponse,
    CourseCatalogResponse,
    CourseEditorResponse,
    CreateCreatorLessonRequest,
    CreateCustomCourseRequest,
    CreateOfficialCourseRequest,
    CreatorCourseResponse,
    CustomCourseResponse,
    GrantAccessRequest,
    InviteTokenResponse,
    JoinCourseResponse,
    MessageResponse,
    OfficialCourseResponse,
    UpdateCustomCourseRequest,
)


# ==============================================================================
# Catalog Router
# ==============================================================================

router_courses = APIRouter(prefix="/v1/courses", tags=["courses"])


@router_courses.get(
    "",
    response_model=CourseCatalogResponse,
    summary="Course catalog",
)
async def list_catalog(
    community_service: CommunityServiceDep,
    user: OptionalUser,
    kit: UUID | None = Query(None, description="Only show courses of this kit"),
) -> CourseCatalogResponse:
    """Official and public community courses of the caller's kits."""
    catalog = await community_service.list_catalog(
        user.id if user else None, selected_kit=kit
    )
    return CourseCatalogResponse(
        kits=[KitResponse.from_kit(k) for k in catalog.kits],
        official_courses=[
            OfficialCourseResponse.from_course(c) for c in catalog.official_courses
        ],
        custom_courses=[CustomCourseResponse.from_course(c) for c in catalog.custom_courses],
        user_courses=[CreatorCourseResponse.from_course(c) for c in catalog.user_courses],
        user_kits=catalog.user_kits,
        selected_kit=catalog.selected_kit,
        can_create_courses=catalog.can_create_courses,
    )


@router_courses.post(
    "",
    response_model=CreatorCourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create community course",
)
async def create_custom_course(
    request: CreateCustomCourseRequest,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> CreatorCourseResponse:
    """Create a draft community course for a kit the caller owns."""
    try:
        course = await creator_service.create_course(
            user_id=user.id,
            kit_id=request.kit_id,
            title=request.title,
            description=request.description,
            price=request.price,
            is_public=request.is_public,
            estimated_duration=request.estimated_duration,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return CreatorCourseResponse.from_course(course)


@router_courses.post(
    "/join/{token}",
    response_model=JoinCourseResponse,
    summary="Join a community course by invite link",
)
async def join_course(
    token: str,
    community_service: CommunityServiceDep,
    user: CurrentUser,
) -> JoinCourseResponse:
    try:
        result = await community_service.join_by_invite(token, user.id)
    except AppError as e:
        raise handle_course_error(e) from e

    if result.is_creator:
        redirect_to = f"/create-course/{result.course.id}"
    else:
        redirect_to = f"/courses/community/{result.course.id}"
    return JoinCourseResponse(
        course_id=result.course.id,
        is_creator=result.is_creator,
        redirect_to=redirect_to,
    )


# ==============================================================================
# Community Router
# ==============================================================================

router_community = APIRouter(prefix="/v1/community/courses", tags=["community"])


@router_community.get(
    "/{course_id}",
    response_model=CommunityCourseResponse,
    summary="Community course page",
)
async def get_community_course(
    course_id: UUID,
    community_service: CommunityServiceDep,
    user: CurrentUser,
) -> CommunityCourseResponse:
    """Published lessons the caller may see, with their progress.

    Returns 404 for missing or unpublished courses, 403 without access and
    402 when the caller does not own the course's kit.
    """
    try:
        view = await community_service.view_course(course_id, user.id)
    except AppError as e:
        raise handle_course_error(e) from e

    return CommunityCourseResponse(
        course=CustomCourseResponse.from_course(view.course),
        lessons=[LessonResponse.from_lesson(lesson) for lesson in view.lessons],
        user_progress=[LessonProgressResponse.from_progress(p) for p in view.user_progress],
        is_creator=view.is_creator,
    )


@router_community.get(
    "/{course_id}/lessons/{lesson_id}",
    response_model=CommunityLessonResponse,
    summary="Community lesson page",
)
async def get_community_lesson(
    course_id: UUID,
    lesson_id: UUID,
    community_service: CommunityServiceDep,
    user: CurrentUser,
) -> CommunityLessonResponse:
    try:
        view = await community_service.view_lesson(course_id, lesson_id, user.id)
    except AppError as e:
        raise handle_course_error(e) from e

    return CommunityLessonResponse(
        course=CustomCourseResponse.from_course(view.course),
        lessons=[LessonResponse.from_lesson(lesson) for lesson in view.lessons],
        lesson=LessonResponse.from_lesson(view.lesson),
        lesson_content=view.lesson_content,
        user_progress=[LessonProgressResponse.from_progress(p) for p in view.user_progress],
    )


@router_community.post(
    "/{course_id}/lessons/{lesson_id}/complete",
    response_model=LessonProgressResponse,
    summary="Mark lesson complete",
)
async def complete_community_lesson(
    course_id: UUID,
    lesson_id: UUID,
    community_service: CommunityServiceDep,
    user: CurrentUser,
) -> LessonProgressResponse:
    try:
        progress = await community_service.mark_complete(course_id, lesson_id, user.id)
    except AppError as e:
        raise handle_course_error(e) from e
    return LessonProgressResponse.from_progress(progress)


# ==============================================================================
# Creator Router
# ==============================================================================

router_creator = APIRouter(prefix="/v1/create-course", tags=["create-course"])


@router_creator.get(
    "/{course_id}",
    response_model=CourseEditorResponse,
    summary="Course editor data",
)
async def get_course_editor(
    course_id: UUID,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> CourseEditorResponse:
    try:
        view = await creator_service.get_editor(course_id, user.id)
    except AppError as e:
        raise handle_course_error(e) from e
    return CourseEditorResponse.from_view(view)


@router_creator.put(
    "/{course_id}",
    response_model=CreatorCourseResponse,
    summary="Update community course",
)
async def update_custom_course(
    course_id: UUID,
    request: UpdateCustomCourseRequest,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> CreatorCourseResponse:
    try:
        course = await creator_service.update_course(
            course_id,
            user.id,
            title=request.title,
            description=request.description,
            price=request.price,
            is_public=request.is_public,
            is_published=request.is_published,
            estimated_duration=request.estimated_duration,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return CreatorCourseResponse.from_course(course)


@router_creator.post(
    "/{course_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add lesson",
)
async def create_creator_lesson(
    course_id: UUID,
    request: CreateCreatorLessonRequest,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> LessonResponse:
    try:
        lesson = await creator_service.create_lesson(
            course_id,
            user.id,
            title=request.title,
            order_index=request.order_index,
            estimated_duration=request.estimated_duration,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return LessonResponse.from_lesson(lesson)


@router_creator.delete(
    "/{course_id}/lessons/{lesson_id}",
    response_model=MessageResponse,
    summary="Delete lesson",
)
async def delete_creator_lesson(
    course_id: UUID,
    lesson_id: UUID,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    try:
        await creator_service.delete_lesson(course_id, user.id, lesson_id)
    except AppError as e:
        raise handle_course_error(e) from e
    return MessageResponse(message="Lesson deleted")


@router_creator.put(
    "/{course_id}/lessons/{lesson_id}/publish",
    response_model=MessageResponse,
    summary="Publish or unpublish lesson",
)
async def publish_creator_lesson(
    course_id: UUID,
    lesson_id: UUID,
    request: PublishLessonRequest,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    try:
        await creator_service.set_lesson_published(
            course_id, user.id, lesson_id, request.is_published
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return MessageResponse()


@router_creator.put(
    "/{course_id}/lessons/{lesson_id}/visibility",
    response_model=MessageResponse,
    summary="Show or hide a lesson for one student",
)
async def set_creator_lesson_visibility(
    course_id: UUID,
    lesson_id: UUID,
    request: LessonVisibilityRequest,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    try:
        await creator_service.set_lesson_visibility(
            course_id,
            user.id,
            lesson_id,
            target_user_id=request.user_id,
            is_visible=request.is_visible,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return MessageResponse()


@router_creator.post(
    "/{course_id}/grants",
    response_model=MessageResponse,
    summary="Grant access by email",
)
async def grant_course_access(
    course_id: UUID,
    request: GrantAccessRequest,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    try:
        message = await creator_service.grant_access_by_email(
            course_id, user.id, request.email
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return MessageResponse(message=message)


@router_creator.delete(
    "/{course_id}/grants/{user_id}",
    response_model=MessageResponse,
    summary="Revoke access",
)
async def revoke_course_access(
    course_id: UUID,
    user_id: UUID,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    try:
        revoked = await creator_service.revoke_access(course_id, user.id, user_id)
    except AppError as e:
        raise handle_course_error(e) from e
    if not revoked:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Access grant not found",
        )
    return MessageResponse()


@router_creator.post(
    "/{course_id}/invite-token",
    response_model=InviteTokenResponse,
    summary="Regenerate invite link",
)
async def regenerate_invite_token(
    course_id: UUID,
    creator_service: CreatorServiceDep,
    user: CurrentUser,
) -> InviteTokenResponse:
    """Replace the invite token; links with the old token stop working."""
    try:
        token = await creator_service.regenerate_invite_token(course_id, user.id)
    except AppError as e:
        raise handle_course_error(e) from e
    return InviteTokenResponse(invite_token=token)


# ==============================================================================
# Admin Router (official courses)
# ==============================================================================

router_admin_courses = APIRouter(prefix="/v1/admin/courses", tags=["admin-courses"])


def _lesson_body(
    request: CreateLessonRequest,
) -> tuple[str | None, str | None, dict | None]:
    """Split the submitted body by content type: (content, component, props)."""
    if request.content_type == LessonContentType.SVELTE:
        return (
            None,
            request.svelte_component or None,
            parse_component_props(request.component_props),
        )
    return request.content or None, None, None


async def _get_official_lesson(
    lesson_service: LessonServiceDep,
    course_id: UUID,
    lesson_id: UUID,
) -> Lesson:
    lesson = await lesson_service.get_lesson(lesson_id)
    if (
        lesson is None
        or lesson.course_id != course_id
        or lesson.course_type != CourseType.OFFICIAL
    ):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lesson not found",
        )
    return lesson


@router_admin_courses.get(
    "",
    response_model=list[OfficialCourseResponse],
    summary="List official courses",
)
async def list_official_courses(
    course_service: CourseServiceDep,
    _admin: CatalogAdmin,
) -> list[OfficialCourseResponse]:
    courses = await course_service.list_official_courses()
    return [OfficialCourseResponse.from_course(c) for c in courses]


@router_admin_courses.post(
    "",
    response_model=OfficialCourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create official course",
)
async def create_official_course(
    request: CreateOfficialCourseRequest,
    course_service: CourseServiceDep,
    kit_service: KitServiceDep,
    _admin: CatalogAdmin,
) -> OfficialCourseResponse:
    if await kit_service.get_kit(request.kit_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Kit not found",
        )
    try:
        course = await course_service.create_official_course(
            kit_id=request.kit_id,
            title=request.title,
            description=request.description,
            theme=request.theme,
            level=request.level,
            estimated_duration=request.estimated_duration,
            is_published=request.is_published,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return OfficialCourseResponse.from_course(course)


@router_admin_courses.get(
    "/{course_id}",
    response_model=AdminCourseDetailResponse,
    summary="Official course with lessons and files",
)
async def get_official_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    kit_service: KitServiceDep,
    lesson_service: LessonServiceDep,
    lesson_file_service: LessonFileServiceDep,
    _admin: CatalogAdmin,
) -> AdminCourseDetailResponse:
    course = await course_service.get_official_course(course_id)
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )

    kit = await kit_service.get_kit(course.kit_id)
    lessons = await lesson_service.list_course_lessons(course.id, CourseType.OFFICIAL)
    files_map = await lesson_file_service.list_for_lessons(l.id for l in lessons)

    return AdminCourseDetailResponse(
        course=OfficialCourseResponse.from_course(course),
        kit=KitResponse.from_kit(kit) if kit else None,
        lessons=[LessonResponse.from_lesson(lesson) for lesson in lessons],
        lesson_files={
            lesson_id: [LessonFileResponse.from_file(f) for f in files]
            for lesson_id, files in files_map.items()
        },
    )


@router_admin_courses.post(
    "/{course_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create official lesson",
)
async def create_official_lesson(
    course_id: UUID,
    request: CreateLessonRequest,
    course_service: CourseServiceDep,
    lesson_service: LessonServiceDep,
    _admin: CatalogAdmin,
) -> LessonResponse:
    if await course_service.get_official_course(course_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )

    content, svelte_component, component_props = _lesson_body(request)
    try:
        lesson = await lesson_service.create_lesson(
            course_id=course_id,
            course_type=CourseType.OFFICIAL,
            title=request.title,
            content_type=request.content_type,
            content=content,
            svelte_component=svelte_component,
            component_props=component_props,
            order_index=request.order_index,
            estimated_duration=request.estimated_duration,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return LessonResponse.from_lesson(lesson)


@router_admin_courses.put(
    "/{course_id}/lessons/{lesson_id}",
    response_model=LessonResponse,
    summary="Update official lesson",
)
async def update_official_lesson(
    course_id: UUID,
    lesson_id: UUID,
    request: UpdateLessonRequest,
    lesson_service: LessonServiceDep,
    _admin: CatalogAdmin,
) -> LessonResponse:
    """Update a lesson; content fields that were not submitted keep their value."""
    lesson = await _get_official_lesson(lesson_service, course_id, lesson_id)
    content, svelte_component, component_props = _lesson_body(request)
    try:
        lesson = await lesson_service.update_lesson(
            lesson,
            title=request.title,
            content_type=request.content_type,
            order_index=request.order_index,
            estimated_duration=request.estimated_duration,
            content=content,
            svelte_component=svelte_component,
            component_props=component_props,
        )
    except AppError as e:
        raise handle_course_error(e) from e
    return LessonResponse.from_lesson(lesson)


@router_admin_courses.put(
    "/{course_id}/lessons/{lesson_id}/publish",
    response_model=MessageResponse,
    summary="Publish or unpublish official lesson",
)
async def publish_official_lesson(
    course_id: UUID,
    lesson_id: UUID,
    request: PublishLessonRequest,
    lesson_service: LessonServiceDep,
    _admin: CatalogAdmin,
) -> MessageResponse:
    lesson = await _get_official_lesson(lesson_service, course_id, lesson_id)
    await lesson_service.set_published(lesson.id, request.is_published)
    return MessageResponse()


@router_admin_courses.delete(
    "/{course_id}/lessons/{lesson_id}",
    response_model=MessageResponse,
    summary="Delete official lesson",
)
async def delete_official_lesson(
    course_id: UUID,
    lesson_id: UUID,
    lesson_service: LessonServiceDep,
    _admin: CatalogAdmin,
) -> MessageResponse:
    lesson = await _get_official_lesson(lesson_service, course_id, lesson_id)
    await lesson_service.delete_lesson(lesson.id)
    return MessageResponse(message="Lesson deleted")
