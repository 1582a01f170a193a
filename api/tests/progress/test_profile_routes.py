"""Tests for the /v1/profile dashboard endpoint."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from src.auth.dependencies import get_profile_service
from src.auth.models import Profile
from src.auth.schemas import AuthenticatedUser
from src.courses.dependencies import get_course_service
from src.courses.models import OfficialCourse
from src.entitlements.dependencies import get_entitlement_service
from src.entitlements.models import PaymentMethod, Purchase
from src.kits.dependencies import get_kit_service
from src.kits.models import Kit
from src.lessons.dependencies import get_lesson_service
from src.lessons.models import CourseType, Lesson
from src.orders.dependencies import get_order_service
from src.progress.dependencies import get_progress_service
from src.progress.models import LessonProgress, LessonProgressStatus


@pytest.fixture
def kit() -> Kit:
    return Kit(name="Solar Kit", theme="energy", level=1, price=Decimal("49.99"))


@pytest.fixture
def course(kit: Kit) -> OfficialCourse:
    return OfficialCourse(kit_id=kit.id, title="Solar Basics", is_published=True)


@pytest.fixture
def lesson(course: OfficialCourse) -> Lesson:
    return Lesson(course_id=course.id, course_type=CourseType.OFFICIAL, title="Panels")


@pytest.fixture
def profile_client(
    client: TestClient,
    student: AuthenticatedUser,
    kit: Kit,
    course: OfficialCourse,
    lesson: Lesson,
) -> TestClient:
    profiles = Mock()
    profiles.get_profile = AsyncMock(
        return_value=Profile(id=student.id, email=student.email)
    )

    entitlements = Mock()
    entitlements.list_user_kit_ids = AsyncMock(return_value=[kit.id])
    entitlements.list_user_purchases = AsyncMock(
        return_value=[
            Purchase(
                user_id=student.id,
                kit_id=kit.id,
                payment_method=PaymentMethod.CODE_REDEMPTION,
            )
        ]
    )

    kits = Mock()
    kits.get_kits = AsyncMock(return_value={kit.id: kit})

    progress = Mock()
    progress.list_user_progress = AsyncMock(
        return_value=[
            LessonProgress(
                user_id=student.id,
                lesson_id=lesson.id,
                course_id=course.id,
                course_type=CourseType.OFFICIAL,
                status=LessonProgressStatus.COMPLETED,
            )
        ]
    )

    courses = Mock()
    courses.get_official_courses = AsyncMock(return_value={course.id: course})
    courses.get_custom_courses = AsyncMock(return_value={})

    lessons = Mock()
    lessons.get_lessons = AsyncMock(return_value={lesson.id: lesson})

    orders = Mock()
    orders.list_recent_orders = AsyncMock(return_value=[])

    overrides = client.app.dependency_overrides
    overrides[get_profile_service] = lambda: profiles
    overrides[get_entitlement_service] = lambda: entitlements
    overrides[get_kit_service] = lambda: kits
    overrides[get_progress_service] = lambda: progress
    overrides[get_course_service] = lambda: courses
    overrides[get_lesson_service] = lambda: lessons
    overrides[get_order_service] = lambda: orders
    return client


class TestProfileDashboard:
    def test_requires_auth(self, profile_client: TestClient) -> None:
        assert profile_client.get("/v1/profile").status_code == 401

    def test_dashboard(
        self, profile_client: TestClient, auth_headers: dict[str, str], kit: Kit
    ) -> None:
        response = profile_client.get("/v1/profile", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [k["name"] for k in data["user_kits"]] == ["Solar Kit"]
        assert data["kit_purchases"][0]["kit_name"] == "Solar Kit"
        assert data["kit_purchases"][0]["payment_method"] == "code_redemption"
        assert data["user_progress"][0]["course_title"] == "Solar Basics"
        assert data["user_progress"][0]["lesson_title"] == "Panels"
        assert data["analytics"]["completed_courses"] == 1
        assert data["recent_orders"] == []
