"""Enrollment service layer.

Business logic for:
- Joining a class by its class code
- Active-enrollment checks used by every student-facing feature
- Student class list and class roster
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from lms.catalog.models import CourseClass
from lms.core.errors import ConflictError, ForbiddenError, NotEnrolledError, NotFoundError

from .models import Enrollment, EnrollmentStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from lms.catalog.service import CatalogService

logger = structlog.get_logger(__name__)


class EnrollmentService:
    """Service for class enrollment."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog_service: "CatalogService",
    ):
        """Initialize with Cassandra session and catalog access."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_student
            WHERE student_id = ? AND class_id = ?
        """)
        self._get_student_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments_by_student WHERE student_id = ?"
        )
        self._get_class_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.enrollments WHERE class_id = ?"
        )
        self._upsert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (class_id, student_id, status, enrolled_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """)
        self._upsert_enrollment_by_student = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_student
            (student_id, class_id, status, enrolled_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """)

    async def _save(self, enrollment: Enrollment) -> None:
        # Dual write: roster table + per-student table
        await self.session.aexecute(
            self._upsert_enrollment,
            [
                enrollment.class_id,
                enrollment.student_id,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._upsert_enrollment_by_student,
            [
                enrollment.student_id,
                enrollment.class_id,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.updated_at,
            ],
        )

    async def get_enrollment(
        self, student_id: UUID, class_id: UUID
    ) -> Enrollment | None:
        """Get a student's enrollment in a class, whatever its status."""
        result = await self.session.aexecute(
            self._get_enrollment, [student_id, class_id]
        )
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def is_actively_enrolled(self, student_id: UUID, class_id: UUID) -> bool:
        enrollment = await self.get_enrollment(student_id, class_id)
        return enrollment is not None and enrollment.is_active

    async def require_active_enrollment(
        self, student_id: UUID, class_id: UUID
    ) -> Enrollment:
        """Get the student's active enrollment.

        Raises:
            NotEnrolledError: If there is no enrollment or it is not active
        """
        enrollment = await self.get_enrollment(student_id, class_id)
        if enrollment is None or not enrollment.is_active:
            raise NotEnrolledError
        return enrollment

    async def join_by_code(
        self, student_id: UUID, class_code: str
    ) -> tuple[Enrollment, CourseClass]:
        """Enroll a student in the class identified by ``class_code``.

        A dropped enrollment is re-activated.

        Raises:
            NotFoundError: If no class has this code
            ForbiddenError: If the class is not accepting enrollments
            ConflictError: If the student is already actively enrolled
        """
        course_class = await self.catalog.get_class_by_code(class_code)
        if not course_class:
            raise NotFoundError(
                "Class code not found. Please check the code and try again."
            )
        if not course_class.is_active:
            raise ForbiddenError(
                "This class is no longer active and not accepting enrollments.",
                "class_inactive",
            )

        existing = await self.get_enrollment(student_id, course_class.id)
        if existing and existing.is_active:
            raise ConflictError(
                "You are already enrolled in this class.", "already_enrolled"
            )

        now = datetime.now(UTC)
        if existing:
            existing.status = EnrollmentStatus.ACTIVE.value
            existing.updated_at = now
            enrollment = existing
        else:
            enrollment = Enrollment(
                class_id=course_class.id,
                student_id=student_id,
                enrolled_at=now,
            )

        await self._save(enrollment)

        logger.info(
            "student_enrolled",
            student_id=str(student_id),
            class_id=str(course_class.id),
            reactivated=existing is not None,
        )
        return enrollment, course_class

    async def list_student_enrollments(
        self, student_id: UUID, active_only: bool = True
    ) -> list[Enrollment]:
        """List a student's enrollments, newest first."""
        result = await self.session.aexecute(
            self._get_student_enrollments, [student_id]
        )
        enrollments = [Enrollment.from_row(row) for row in result]
        if active_only:
            enrollments = [e for e in enrollments if e.is_active]
        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def list_student_classes(
        self, student_id: UUID
    ) -> list[tuple[Enrollment, CourseClass]]:
        """List the classes a student is actively enrolled in."""
        classes = []
        for enrollment in await self.list_student_enrollments(student_id):
            course_class = await self.catalog.get_class(enrollment.class_id)
            if course_class:
                classes.append((enrollment, course_class))
        return classes

    async def list_class_enrollments(
        self, class_id: UUID, active_only: bool = True
    ) -> list[Enrollment]:
        """List the roster of a class."""
        result = await self.session.aexecute(self._get_class_enrollments, [class_id])
        enrollments = [Enrollment.from_row(row) for row in result]
        if active_only:
            enrollments = [e for e in enrollments if e.is_active]
        return enrollments
