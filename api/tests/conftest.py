"""Shared pytest fixtures."""

import os
from collections.abc import Iterator
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "console")

from fastapi.testclient import TestClient  # noqa: E402

from src.auth.permissions import UserRole  # noqa: E402
from src.auth.schemas import AuthenticatedUser  # noqa: E402
from src.auth.security import create_access_token  # noqa: E402


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client without running the lifespan (no database connection)."""
    from src.main import app

    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def student(user_id: UUID) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=user_id, email="student@example.com", role=UserRole.STUDENT.value
    )


@pytest.fixture
def student_token(student: AuthenticatedUser) -> str:
    return create_access_token(
        {"sub": str(student.id), "email": student.email, "role": student.role}
    )


@pytest.fixture
def auth_headers(student_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {student_token}"}


@pytest.fixture
def mock_session() -> Mock:
    """Cassandra session double; statements are prepared eagerly."""
    session = Mock()
    session.prepare = Mock(side_effect=lambda query: Mock(query=query))
    session.aexecute = AsyncMock(return_value=[])
    return session
