"""Tests for joining classes and enrollment checks."""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from lms.catalog.models import CourseClass
from lms.core.errors import ConflictError, ForbiddenError, NotEnrolledError, NotFoundError
from lms.enrollments.models import Enrollment, EnrollmentStatus
from lms.enrollments.service import EnrollmentService


@pytest.fixture
def course_class() -> CourseClass:
    return CourseClass(
        title="Intro to Biology",
        class_code="ALI-BIO101-FA25-01",
        professor_id=uuid4(),
    )


@pytest.fixture
def mock_catalog(course_class: CourseClass) -> Mock:
    catalog = Mock()
    catalog.get_class_by_code = AsyncMock(return_value=course_class)
    catalog.get_class = AsyncMock(return_value=course_class)
    return catalog


@pytest.fixture
def enrollment_service(mock_session: Mock, mock_catalog: Mock) -> EnrollmentService:
    return EnrollmentService(
        session=mock_session,
        keyspace="test_keyspace",
        catalog_service=mock_catalog,
    )


def stored(student_id: UUID, class_id: UUID, status: EnrollmentStatus) -> Enrollment:
    return Enrollment(class_id=class_id, student_id=student_id, status=status.value)


class TestJoinByCode:
    """Tests for join_by_code."""

    @pytest.mark.asyncio
    async def test_new_enrollment(
        self,
        enrollment_service: EnrollmentService,
        mock_session: Mock,
        course_class: CourseClass,
    ) -> None:
        enrollment_service.get_enrollment = AsyncMock(return_value=None)
        student_id = uuid4()

        enrollment, joined = await enrollment_service.join_by_code(
            student_id, "ali-bio101-fa25-01"
        )

        assert joined is course_class
        assert enrollment.student_id == student_id
        assert enrollment.class_id == course_class.id
        assert enrollment.is_active
        # Both the roster and the per-student table are written
        assert mock_session.aexecute.call_count == 2

    @pytest.mark.asyncio
    async def test_unknown_code(
        self, enrollment_service: EnrollmentService, mock_catalog: Mock
    ) -> None:
        mock_catalog.get_class_by_code.return_value = None
        with pytest.raises(NotFoundError):
            await enrollment_service.join_by_code(uuid4(), "NOPE")

    @pytest.mark.asyncio
    async def test_inactive_class(
        self, enrollment_service: EnrollmentService, course_class: CourseClass
    ) -> None:
        course_class.is_active = False
        with pytest.raises(ForbiddenError) as exc_info:
            await enrollment_service.join_by_code(uuid4(), course_class.class_code)
        assert exc_info.value.code == "class_inactive"

    @pytest.mark.asyncio
    async def test_already_enrolled(
        self, enrollment_service: EnrollmentService, course_class: CourseClass
    ) -> None:
        student_id = uuid4()
        enrollment_service.get_enrollment = AsyncMock(
            return_value=stored(student_id, course_class.id, EnrollmentStatus.ACTIVE)
        )
        with pytest.raises(ConflictError):
            await enrollment_service.join_by_code(student_id, course_class.class_code)

    @pytest.mark.asyncio
    async def test_dropped_enrollment_reactivated(
        self, enrollment_service: EnrollmentService, course_class: CourseClass
    ) -> None:
        student_id = uuid4()
        dropped = stored(student_id, course_class.id, EnrollmentStatus.DROPPED)
        enrollment_service.get_enrollment = AsyncMock(return_value=dropped)

        enrollment, _ = await enrollment_service.join_by_code(
            student_id, course_class.class_code
        )

        assert enrollment is dropped
        assert enrollment.status == EnrollmentStatus.ACTIVE.value


class TestRequireActiveEnrollment:
    """Tests for require_active_enrollment."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [None, EnrollmentStatus.DROPPED])
    async def test_rejected(
        self,
        enrollment_service: EnrollmentService,
        status: EnrollmentStatus | None,
    ) -> None:
        student_id, class_id = uuid4(), uuid4()
        enrollment_service.get_enrollment = AsyncMock(
            return_value=stored(student_id, class_id, status) if status else None
        )
        with pytest.raises(NotEnrolledError):
            await enrollment_service.require_active_enrollment(student_id, class_id)

    @pytest.mark.asyncio
    async def test_active(self, enrollment_service: EnrollmentService) -> None:
        student_id, class_id = uuid4(), uuid4()
        active = stored(student_id, class_id, EnrollmentStatus.ACTIVE)
        enrollment_service.get_enrollment = AsyncMock(return_value=active)

        assert (
            await enrollment_service.require_active_enrollment(student_id, class_id)
            is active
        )


class TestJoinEndpoint:
    """Tests for POST /v1/enrollments/join."""

    def test_join_returns_class(
        self,
        client: TestClient,
        student_token: str,
        student_id: UUID,
        course_class: CourseClass,
    ) -> None:
        service = Mock()
        service.join_by_code = AsyncMock(
            return_value=(
                Enrollment(class_id=course_class.id, student_id=student_id),
                course_class,
            )
        )
        client.app.state.enrollment_service = service

        response = client.post(
            "/v1/enrollments/join",
            headers={"Authorization": f"Bearer {student_token}"},
            json={"class_code": " ali-bio101-fa25-01 "},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["class"]["class_code"] == "ALI-BIO101-FA25-01"
        assert data["enrollment"]["student_id"] == str(student_id)
        service.join_by_code.assert_awaited_once_with(student_id, "ALI-BIO101-FA25-01")

    def test_join_conflict(
        self, client: TestClient, student_token: str
    ) -> None:
        service = Mock()
        service.join_by_code = AsyncMock(
            side_effect=ConflictError("You are already enrolled in this class.")
        )
        client.app.state.enrollment_service = service

        response = client.post(
            "/v1/enrollments/join",
            headers={"Authorization": f"Bearer {student_token}"},
            json={"class_code": "ALI-BIO101-FA25-01"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "You are already enrolled in this class."
