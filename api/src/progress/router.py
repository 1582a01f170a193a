"""Profile dashboard endpoint."""

from fastapi import APIRouter

from src.auth.dependencies import CurrentProfile
from src.auth.schemas import ProfileResponse
from src.entitlements.schemas import PurchaseResponse
from src.courses.dependencies import CourseServiceDep
from src.entitlements.dependencies import EntitlementServiceDep
from src.kits.dependencies import KitServiceDep
from src.kits.schemas import KitResponse
from src.lessons.dependencies import LessonServiceDep
from src.lessons.models import CourseType
from src.orders.dependencies import OrderServiceDep
from src.orders.schemas import OrderResponse

from .dashboard import build_analytics
from .dependencies import ProgressServiceDep
from .schemas import DashboardProgressItem, LessonProgressResponse, ProfileDashboardResponse


router = APIRouter(prefix="/v1/profile", tags=["profile"])


@router.get(
    "",
    response_model=ProfileDashboardResponse,
    summary="Profile dashboard",
)
async def get_profile_dashboard(
    profile: CurrentProfile,
    progress_service: ProgressServiceDep,
    entitlement_service: EntitlementServiceDep,
    kit_service: KitServiceDep,
    course_service: CourseServiceDep,
    lesson_service: LessonServiceDep,
    order_service: OrderServiceDep,
) -> ProfileDashboardResponse:
    """Profile, owned kits with their purchase history, progress and analytics."""
    kit_ids = await entitlement_service.list_user_kit_ids(profile.id)
    purchases = await entitlement_service.list_user_purchases(profile.id)
    kits = await kit_service.get_kits([*kit_ids, *(p.kit_id for p in purchases)])

    progress = await progress_service.list_user_progress(profile.id)
    lessons = await lesson_service.get_lessons(p.lesson_id for p in progress)
    official = await course_service.get_official_courses(
        p.course_id for p in progress if p.course_type == CourseType.OFFICIAL
    )
    custom = await course_service.get_custom_courses(
        p.course_id for p in progress if p.course_type == CourseType.CUSTOM
    )

    items = []
    for row in progress:
        course = official.get(row.course_id) or custom.get(row.course_id)
        lesson = lessons.get(row.lesson_id)
        item = DashboardProgressItem(
            **LessonProgressResponse.from_progress(row).model_dump(),
            course_title=course.title if course else "Unknown Course",
            lesson_title=lesson.title if lesson else "Unknown Lesson",
        )
        items.append(item)

    orders = await order_service.list_recent_orders(profile.id, limit=5)

    return ProfileDashboardResponse(
        profile=ProfileResponse.from_profile(profile),
        user_kits=[KitResponse.from_kit(kits[k]) for k in kit_ids if k in kits],
        user_progress=items,
        recent_orders=[OrderResponse.from_order(o) for o in orders],
        kit_purchases=[
            PurchaseResponse.from_purchase(
                p, kits[p.kit_id].name if p.kit_id in kits else None
            )
            for p in purchases
        ],
        analytics=build_analytics(progress),
    )
