"""Pydantic schemas for progress and the profile dashboard."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.auth.schemas import ProfileResponse
from src.entitlements.schemas import PurchaseResponse
from src.kits.schemas import KitResponse
from src.orders.schemas import OrderResponse
from src.progress.models import LessonProgress


class LessonProgressResponse(BaseModel):
    """Progress on one lesson."""

    lesson_id: UUID
    course_id: UUID
    course_type: str
    status: str
    completed_at: datetime | None = None
    updated_at: datetime

    @classmethod
    def from_progress(cls, progress: LessonProgress) -> "LessonProgressResponse":
        data = progress.to_dict()
        data.pop("user_id")
        return cls(**data)


class DashboardProgressItem(LessonProgressResponse):
    """Progress row joined with course and lesson titles."""

    course_title: str = "Unknown Course"
    lesson_title: str = "Unknown Lesson"


class DashboardAnalytics(BaseModel):
    total_courses: int = 0
    completed_courses: int = 0
    in_progress_courses: int = 0
    total_lessons: int = 0
    completed_lessons: int = 0


class ProfileDashboardResponse(BaseModel):
    """Profile page data."""

    profile: ProfileResponse
    user_kits: list[KitResponse] = Field(default_factory=list)
    user_progress: list[DashboardProgressItem] = Field(default_factory=list)
    recent_orders: list[OrderResponse] = Field(default_factory=list)
    kit_purchases: list[PurchaseResponse] = Field(default_factory=list)
    analytics: DashboardAnalytics = Field(default_factory=DashboardAnalytics)
