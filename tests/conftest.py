"""Shared fixtures: test client, bearer tokens and a mocked Cassandra session."""

from collections.abc import Iterator
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session
from fastapi.testclient import TestClient

from lms.auth.permissions import UserRole
from lms.auth.security import create_access_token


SERVICE_ATTRIBUTES = (
    "catalog_service",
    "enrollment_service",
    "progression_service",
    "grading_service",
    "discussion_service",
)


def make_token(user_id: UUID, role: UserRole) -> str:
    """Create an access token for the given user and role."""
    return create_access_token(
        {
            "sub": str(user_id),
            "email": f"{role.value}_{user_id.hex[:8]}@test.com",
            "role": role.value,
        }
    )


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_session() -> Mock:
    """Mock Cassandra session with awaitable ``aexecute``."""
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client without lifespan (no database)."""
    from lms.main import app

    yield TestClient(app)

    for name in SERVICE_ATTRIBUTES:
        if hasattr(app.state, name):
            delattr(app.state, name)


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def professor_id() -> UUID:
    return uuid4()


@pytest.fixture
def student_token(student_id: UUID) -> str:
    return make_token(student_id, UserRole.STUDENT)


@pytest.fixture
def professor_token(professor_id: UUID) -> str:
    return make_token(professor_id, UserRole.PROFESSOR)


@pytest.fixture
def admin_token() -> str:
    return make_token(uuid4(), UserRole.ADMIN)
