"""Database models for assessment submissions.

One row per (assessment, student); the primary key is the uniqueness
constraint. Discussion participation (post id and reply counter) lives
on the same row so auto-grading reads a single partition.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from lms.catalog.models import ensure_utc_aware


class SubmissionStatus(str, Enum):
    """Submission status. No row at all means not submitted."""

    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"
    LATE = "LATE"


class GradeStatus(str, Enum):
    """Per-assessment status in grade reports."""

    GRADED = "graded"
    PENDING = "pending"
    NOT_SUBMITTED = "not_submitted"


SUBMISSION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assessment_submissions (
    assessment_id UUID,
    student_id UUID,
    id UUID,
    class_id UUID,
    status TEXT,
    total_score DECIMAL,
    manual_score DECIMAL,
    auto_score DECIMAL,
    feedback TEXT,
    is_late BOOLEAN,
    discussion_post_id UUID,
    discussion_reply_count INT,
    submitted_at TIMESTAMP,
    graded_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (assessment_id, student_id)
)
"""

GRADING_TABLES_CQL = [
    SUBMISSION_TABLE_CQL,
]


class Submission:
    """A student's submission for an assessment."""

    def __init__(
        self,
        assessment_id: UUID,
        student_id: UUID,
        class_id: UUID,
        status: str = SubmissionStatus.SUBMITTED.value,
        total_score: Decimal | None = None,
        manual_score: Decimal | None = None,
        auto_score: Decimal | None = None,
        feedback: str | None = None,
        is_late: bool = False,
        discussion_post_id: UUID | None = None,
        discussion_reply_count: int = 0,
        id: UUID | None = None,
        submitted_at: datetime | None = None,
        graded_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.assessment_id = assessment_id
        self.student_id = student_id
        self.class_id = class_id
        self.status = status
        self.total_score = total_score
        self.manual_score = manual_score
        self.auto_score = auto_score
        self.feedback = feedback
        self.is_late = is_late
        self.discussion_post_id = discussion_post_id
        self.discussion_reply_count = discussion_reply_count
        self.submitted_at = ensure_utc_aware(submitted_at) or datetime.now(UTC)
        self.graded_at = ensure_utc_aware(graded_at)
        self.updated_at = ensure_utc_aware(updated_at) or self.submitted_at

    @property
    def is_graded(self) -> bool:
        return (
            self.status == SubmissionStatus.GRADED.value
            and self.total_score is not None
        )

    @classmethod
    def from_row(cls, row: Any) -> "Submission":
        """Create Submission instance from Cassandra row."""
        return cls(
            id=row.id,
            assessment_id=row.assessment_id,
            student_id=row.student_id,
            class_id=row.class_id,
            status=row.status or SubmissionStatus.SUBMITTED.value,
            total_score=row.total_score,
            manual_score=row.manual_score,
            auto_score=row.auto_score,
            feedback=row.feedback,
            is_late=bool(row.is_late),
            discussion_post_id=row.discussion_post_id,
            discussion_reply_count=row.discussion_reply_count or 0,
            submitted_at=row.submitted_at,
            graded_at=row.graded_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Submission {self.assessment_id}/{self.student_id} {self.status}>"
