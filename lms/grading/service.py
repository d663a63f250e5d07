"""Grading service layer.

Business logic for:
- Submission storage shared with the discussion board
- Student grade report across active classes
- Class gradebook
- Manual grading
- Discussion auto-grading
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from lms.catalog.models import Assessment, AssessmentType
from lms.core.errors import NotFoundError, ValidationError

from .aggregator import grade_status, score_percentage, summarize_grades
from .discussion import discussion_award, effective_minimum_replies
from .models import GradeStatus, Submission, SubmissionStatus
from .schemas import (
    BucketResponse,
    ClassBreakdownResponse,
    GradebookAssessmentResponse,
    GradebookResponse,
    GradebookRowResponse,
    GradeCellResponse,
    GradeRowResponse,
    OverallStatsResponse,
    StudentGradesResponse,
    TypeBreakdownResponse,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from lms.catalog.service import CatalogService
    from lms.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)

STATUS_ORDER = {
    GradeStatus.GRADED: 0,
    GradeStatus.PENDING: 1,
    GradeStatus.NOT_SUBMITTED: 2,
}


class GradingService:
    """Service for submissions and grades."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog_service: "CatalogService",
        enrollment_service: "EnrollmentService",
        discussion_default_minimum_replies: int = 1,
    ):
        """Initialize with Cassandra session and collaborating services."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog_service
        self.enrollments = enrollment_service
        self.default_minimum_replies = discussion_default_minimum_replies
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assessment_submissions
            WHERE assessment_id = ? AND student_id = ?
        """)
        self._get_assessment_submissions = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.assessment_submissions WHERE assessment_id = ?"
        )
        self._upsert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assessment_submissions
            (assessment_id, student_id, id, class_id, status, total_score,
             manual_score, auto_score, feedback, is_late, discussion_post_id,
             discussion_reply_count, submitted_at, graded_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_reply_count = self.session.prepare(f"""
            UPDATE {self.keyspace}.assessment_submissions
            SET discussion_reply_count = ?, updated_at = ?
            WHERE assessment_id = ? AND student_id = ?
        """)

    # ==========================================================================
    # Submission Storage
    # ==========================================================================

    async def get_submission(
        self, assessment_id: UUID, student_id: UUID
    ) -> Submission | None:
        result = await self.session.aexecute(
            self._get_submission, [assessment_id, student_id]
        )
        row = result.one()
        return Submission.from_row(row) if row else None

    async def list_assessment_submissions(self, assessment_id: UUID) -> list[Submission]:
        result = await self.session.aexecute(
            self._get_assessment_submissions, [assessment_id]
        )
        return [Submission.from_row(row) for row in result]

    async def save_submission(self, submission: Submission) -> None:
        """Upsert the full submission row."""
        submission.updated_at = datetime.now(UTC)
        await self.session.aexecute(
            self._upsert_submission,
            [
                submission.assessment_id,
                submission.student_id,
                submission.id,
                submission.class_id,
                submission.status,
                submission.total_score,
                submission.manual_score,
                submission.auto_score,
                submission.feedback,
                submission.is_late,
                submission.discussion_post_id,
                submission.discussion_reply_count,
                submission.submitted_at,
                submission.graded_at,
                submission.updated_at,
            ],
        )

    async def increment_reply_count(self, assessment_id: UUID, student_id: UUID) -> bool:
        """Add one to the student's discussion reply counter.

        Returns:
            False when the student has no submission for the assessment
        """
        submission = await self.get_submission(assessment_id, student_id)
        if not submission:
            return False

        await self.session.aexecute(
            self._update_reply_count,
            [
                submission.discussion_reply_count + 1,
                datetime.now(UTC),
                assessment_id,
                student_id,
            ],
        )
        return True

    # ==========================================================================
    # Student Grade Report
    # ==========================================================================

    async def student_report(self, student_id: UUID) -> StudentGradesResponse:
        """Grades across every class the student is actively enrolled in.

        Only published assessments are reported.
        """
        classes = {}
        assessments: list[Assessment] = []
        for enrollment, course_class in await self.enrollments.list_student_classes(
            student_id
        ):
            classes[course_class.id] = course_class
            class_assessments = await self.catalog.list_assessments(enrollment.class_id)
            assessments.extend(a for a in class_assessments if a.is_published)

        submissions = {}
        for assessment in assessments:
            submission = await self.get_submission(assessment.id, student_id)
            if submission:
                submissions[assessment.id] = submission

        summary = summarize_grades(assessments, submissions)

        rows = []
        for assessment in assessments:
            submission = submissions.get(assessment.id)
            status = grade_status(submission)
            graded = status == GradeStatus.GRADED
            course_class = classes.get(assessment.class_id)
            rows.append(
                GradeRowResponse(
                    submission_id=submission.id if submission else None,
                    assessment_id=assessment.id,
                    assessment_title=assessment.title,
                    assessment_type=assessment.type,
                    class_id=assessment.class_id,
                    class_title=course_class.title if course_class else None,
                    score=submission.total_score if graded else None,
                    max_points=assessment.max_points,
                    percentage=score_percentage(submission, assessment.max_points),
                    status=status,
                    submitted_at=submission.submitted_at if submission else None,
                    graded_at=submission.graded_at if graded else None,
                    feedback=submission.feedback if submission else None,
                )
            )
        rows.sort(key=lambda r: STATUS_ORDER[r.status])

        type_breakdown = [
            TypeBreakdownResponse(
                type=assessment_type,
                **BucketResponse.from_bucket(bucket).model_dump(),
            )
            for assessment_type, bucket in summary.by_type.items()
        ]
        class_breakdown = [
            ClassBreakdownResponse(
                class_id=class_id,
                class_title=classes[class_id].title if class_id in classes else None,
                class_code=classes[class_id].class_code if class_id in classes else None,
                **BucketResponse.from_bucket(bucket).model_dump(),
            )
            for class_id, bucket in summary.by_class.items()
        ]

        overall = summary.overall
        return StudentGradesResponse(
            overall_stats=OverallStatsResponse(
                average=overall.average,
                total_points_earned=overall.earned,
                total_points_possible=overall.possible,
                total_graded_assignments=overall.graded,
                total_assignments=overall.total,
                completion_rate=overall.completion_rate,
            ),
            type_breakdown=type_breakdown,
            class_breakdown=class_breakdown,
            grades=rows,
        )

    # ==========================================================================
    # Gradebook
    # ==========================================================================

    async def gradebook(self, class_id: UUID) -> GradebookResponse:
        """Grade grid for every active student of a class."""
        assessments = await self.catalog.list_assessments(class_id)
        assessments.sort(
            key=lambda a: (a.type, a.due_at is None, a.due_at or a.created_at)
        )

        by_student: dict[UUID, dict[UUID, Submission]] = {}
        for assessment in assessments:
            for submission in await self.list_assessment_submissions(assessment.id):
                by_student.setdefault(submission.student_id, {})[assessment.id] = (
                    submission
                )

        enrollments = await self.enrollments.list_class_enrollments(class_id)
        enrollments.sort(key=lambda e: e.enrolled_at)

        rows = []
        for enrollment in enrollments:
            submissions = by_student.get(enrollment.student_id, {})
            summary = summarize_grades(assessments, submissions)

            grades = {}
            for assessment in assessments:
                submission = submissions.get(assessment.id)
                if submission:
                    grades[assessment.id] = GradeCellResponse(
                        submission_id=submission.id,
                        score=submission.total_score,
                        status=submission.status,
                        is_late=submission.is_late,
                    )
                else:
                    grades[assessment.id] = GradeCellResponse(status="NOT_SUBMITTED")

            rows.append(
                GradebookRowResponse(
                    student_id=enrollment.student_id,
                    grades=grades,
                    category_percentages={
                        t: b.average for t, b in summary.by_type.items()
                    },
                    overall_percentage=summary.overall.average,
                    total_earned=summary.overall.earned,
                    total_possible=summary.overall.possible,
                )
            )

        return GradebookResponse(
            class_id=class_id,
            assessments=[
                GradebookAssessmentResponse(
                    id=a.id,
                    title=a.title,
                    type=a.type,
                    max_points=a.max_points,
                    due_at=a.due_at,
                )
                for a in assessments
            ],
            students=rows,
        )

    # ==========================================================================
    # Grading
    # ==========================================================================

    async def grade_submission(
        self,
        assessment: Assessment,
        student_id: UUID,
        manual_score: Decimal,
        feedback: str | None = None,
        is_late: bool | None = None,
    ) -> Submission:
        """Set a manual score; creates the submission when absent.

        Raises:
            ValidationError: If score is outside 0..max_points
            NotFoundError: If the student is not actively enrolled
        """
        if manual_score < 0 or manual_score > assessment.max_points:
            msg = f"Score must be between 0 and {assessment.max_points}"
            raise ValidationError(msg)

        if not await self.enrollments.is_actively_enrolled(
            student_id, assessment.class_id
        ):
            raise NotFoundError("Student not enrolled in this class", "not_enrolled")

        submission = await self.get_submission(assessment.id, student_id)
        if submission is None:
            submission = Submission(
                assessment_id=assessment.id,
                student_id=student_id,
                class_id=assessment.class_id,
            )

        now = datetime.now(UTC)
        submission.manual_score = manual_score
        submission.total_score = manual_score
        submission.status = SubmissionStatus.GRADED.value
        submission.graded_at = now
        if feedback is not None:
            submission.feedback = feedback
        if is_late is not None:
            submission.is_late = is_late

        await self.save_submission(submission)

        logger.info(
            "submission_graded",
            assessment_id=str(assessment.id),
            student_id=str(student_id),
            score=str(manual_score),
        )
        return submission

    async def auto_grade_discussion(self, assessment: Assessment) -> int:
        """Grade every ungraded submission of a discussion by participation.

        Returns:
            Number of submissions graded in this run

        Raises:
            ValidationError: If auto-grading is not enabled for the assessment
        """
        if assessment.type != AssessmentType.DISCUSSION.value:
            raise ValidationError("Assessment is not a discussion")
        if not assessment.auto_complete_enabled:
            raise ValidationError("Auto-grading is not enabled for this assessment")

        minimum_replies = effective_minimum_replies(
            assessment.minimum_reply_count, self.default_minimum_replies
        )

        graded = 0
        for submission in await self.list_assessment_submissions(assessment.id):
            if submission.status == SubmissionStatus.GRADED.value:
                continue

            award = discussion_award(
                has_post=submission.discussion_post_id is not None,
                reply_count=submission.discussion_reply_count,
                minimum_replies=minimum_replies,
                max_points=assessment.max_points,
            )
            submission.auto_score = award
            submission.total_score = award
            submission.status = SubmissionStatus.GRADED.value
            submission.graded_at = datetime.now(UTC)
            await self.save_submission(submission)
            graded += 1

        logger.info(
            "discussion_auto_graded",
            assessment_id=str(assessment.id),
            graded_count=graded,
            minimum_replies=minimum_replies,
        )
        return graded
