"""Database models for class enrollment.

Cassandra table definitions for:
- Enrollments by class (roster queries)
- Enrollments by student (access checks and "my classes")

Both tables are written together; the per-student table answers the
active-enrollment check on every student request.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from lms.catalog.models import ensure_utc_aware


class EnrollmentStatus(str, Enum):
    """Enrollment status. Only ACTIVE grants access to the class."""

    ACTIVE = "active"
    DROPPED = "dropped"


ENROLLMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    class_id UUID,
    student_id UUID,
    status TEXT,
    enrolled_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (class_id, student_id)
)
"""

ENROLLMENTS_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_student (
    student_id UUID,
    class_id UUID,
    status TEXT,
    enrolled_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (student_id, class_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENT_TABLE_CQL,
    ENROLLMENTS_BY_STUDENT_TABLE_CQL,
]


class Enrollment:
    """Membership of a student in a class."""

    def __init__(
        self,
        class_id: UUID,
        student_id: UUID,
        status: str = EnrollmentStatus.ACTIVE.value,
        enrolled_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.class_id = class_id
        self.student_id = student_id
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.enrolled_at

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            class_id=row.class_id,
            student_id=row.student_id,
            status=row.status or EnrollmentStatus.ACTIVE.value,
            enrolled_at=row.enrolled_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Enrollment class={self.class_id} student={self.student_id} {self.status}>"
