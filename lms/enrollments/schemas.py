"""Pydantic schemas for enrollment."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from lms.catalog.schemas import ClassResponse

from .models import Enrollment, EnrollmentStatus


class JoinClassRequest(BaseModel):
    """Join-by-code request."""

    class_code: str = Field(..., min_length=3, max_length=50)

    @field_validator("class_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    class_id: UUID
    student_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime

    @classmethod
    def from_entity(cls, enrollment: Enrollment) -> "EnrollmentResponse":
        return cls(
            class_id=enrollment.class_id,
            student_id=enrollment.student_id,
            status=EnrollmentStatus(enrollment.status),
            enrolled_at=enrollment.enrolled_at,
        )


class JoinClassResponse(BaseModel):
    """Join result with the class joined."""

    message: str = "Successfully enrolled in class"
    enrollment: EnrollmentResponse
    class_: ClassResponse = Field(..., serialization_alias="class")


class StudentClassResponse(ClassResponse):
    """Class as seen by an enrolled student."""

    enrolled_at: datetime


class StudentClassListResponse(BaseModel):
    """Student class list."""

    classes: list[StudentClassResponse]
    total: int


class RosterResponse(BaseModel):
    """Active roster of a class."""

    students: list[EnrollmentResponse]
    total: int
