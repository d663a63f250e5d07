"""Pydantic schemas for grading.

Request and response models for:
- Student grade report
- Class gradebook
- Manual grading and discussion auto-grading
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from lms.catalog.models import AssessmentType

from .aggregator import ScoreBucket
from .models import GradeStatus, Submission, SubmissionStatus


# ==============================================================================
# Shared
# ==============================================================================


class BucketResponse(BaseModel):
    """Point totals for a group of assessments."""

    earned: Decimal
    possible: Decimal
    graded: int
    total: int
    average: float
    completion_rate: float

    @classmethod
    def from_bucket(cls, bucket: ScoreBucket) -> "BucketResponse":
        return cls(
            earned=bucket.earned,
            possible=bucket.possible,
            graded=bucket.graded,
            total=bucket.total,
            average=bucket.average,
            completion_rate=bucket.completion_rate,
        )


class SubmissionResponse(BaseModel):
    """Submission response."""

    id: UUID
    assessment_id: UUID
    student_id: UUID
    class_id: UUID
    status: SubmissionStatus
    total_score: Decimal | None = None
    manual_score: Decimal | None = None
    auto_score: Decimal | None = None
    feedback: str | None = None
    is_late: bool = False
    discussion_post_id: UUID | None = None
    discussion_reply_count: int = 0
    submitted_at: datetime
    graded_at: datetime | None = None

    @classmethod
    def from_entity(cls, submission: Submission) -> "SubmissionResponse":
        return cls(
            id=submission.id,
            assessment_id=submission.assessment_id,
            student_id=submission.student_id,
            class_id=submission.class_id,
            status=SubmissionStatus(submission.status),
            total_score=submission.total_score,
            manual_score=submission.manual_score,
            auto_score=submission.auto_score,
            feedback=submission.feedback,
            is_late=submission.is_late,
            discussion_post_id=submission.discussion_post_id,
            discussion_reply_count=submission.discussion_reply_count,
            submitted_at=submission.submitted_at,
            graded_at=submission.graded_at,
        )


# ==============================================================================
# Student Grade Report
# ==============================================================================


class GradeRowResponse(BaseModel):
    """One assessment in a student's grade report."""

    submission_id: UUID | None = None
    assessment_id: UUID
    assessment_title: str
    assessment_type: AssessmentType
    class_id: UUID
    class_title: str | None = None
    score: Decimal | None = None
    max_points: Decimal
    percentage: float | None = None
    status: GradeStatus
    submitted_at: datetime | None = None
    graded_at: datetime | None = None
    feedback: str | None = None


class OverallStatsResponse(BaseModel):
    """Totals across all of a student's classes."""

    average: float
    total_points_earned: Decimal
    total_points_possible: Decimal
    total_graded_assignments: int
    total_assignments: int
    completion_rate: float


class TypeBreakdownResponse(BucketResponse):
    """Totals for one assessment type."""

    type: AssessmentType


class ClassBreakdownResponse(BucketResponse):
    """Totals for one class."""

    class_id: UUID
    class_title: str | None = None
    class_code: str | None = None


class StudentGradesResponse(BaseModel):
    """Student grade report across active classes."""

    overall_stats: OverallStatsResponse
    type_breakdown: list[TypeBreakdownResponse]
    class_breakdown: list[ClassBreakdownResponse]
    grades: list[GradeRowResponse]


# ==============================================================================
# Gradebook
# ==============================================================================


class GradebookAssessmentResponse(BaseModel):
    """Gradebook column."""

    id: UUID
    title: str
    type: AssessmentType
    max_points: Decimal
    due_at: datetime | None = None


class GradeCellResponse(BaseModel):
    """Gradebook cell; ``NOT_SUBMITTED`` when there is no submission."""

    submission_id: UUID | None = None
    score: Decimal | None = None
    status: str
    is_late: bool = False


class GradebookRowResponse(BaseModel):
    """Gradebook row for one student."""

    student_id: UUID
    grades: dict[UUID, GradeCellResponse]
    category_percentages: dict[str, float]
    overall_percentage: float
    total_earned: Decimal
    total_possible: Decimal


class GradebookResponse(BaseModel):
    """Class gradebook grid."""

    class_id: UUID
    assessments: list[GradebookAssessmentResponse]
    students: list[GradebookRowResponse]


# ==============================================================================
# Grading Requests
# ==============================================================================


class ManualGradeRequest(BaseModel):
    """Manual grade request. Range against max points is checked by the service."""

    manual_score: Decimal = Field(..., description="Score between 0 and max points")
    feedback: str | None = Field(None, max_length=10000)
    is_late: bool | None = None


class AutoGradeResponse(BaseModel):
    """Discussion auto-grading result."""

    success: bool = True
    message: str
    graded_count: int
