"""Discussion board service layer.

Business logic for:
- Posting to a discussion (one post per student) and the submission it creates
- Replies and the replier's participation counter
- Listing posts with replies, pinning
- Participation statistics
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from lms.catalog.models import Assessment, AssessmentType
from lms.core.errors import ConflictError, ForbiddenError, NotFoundError
from lms.grading.models import Submission, SubmissionStatus

from .models import DiscussionPost, DiscussionReply


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from lms.catalog.service import CatalogService
    from lms.enrollments.service import EnrollmentService
    from lms.grading.service import GradingService

logger = structlog.get_logger(__name__)


@dataclass
class PostThread:
    post: DiscussionPost
    replies: list[DiscussionReply] = field(default_factory=list)


@dataclass
class DiscussionStats:
    total_students: int
    total_posts: int
    total_replies: int
    students_with_posts: int
    submitted_count: int
    graded_count: int
    average_score: Decimal | None
    pinned_posts: int

    @property
    def participation_rate(self) -> float:
        if self.total_students == 0:
            return 0
        return self.students_with_posts / self.total_students * 100

    @property
    def ungraded_count(self) -> int:
        return self.submitted_count - self.graded_count


class DiscussionService:
    """Service for discussion boards."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog_service: "CatalogService",
        enrollment_service: "EnrollmentService",
        grading_service: "GradingService",
    ):
        """Initialize with Cassandra session and collaborating services."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog_service
        self.enrollments = enrollment_service
        self.grading = grading_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_posts = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.discussion_posts WHERE assessment_id = ?"
        )
        self._get_post = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.discussion_posts
            WHERE assessment_id = ? AND id = ?
        """)
        self._insert_post = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.discussion_posts
            (assessment_id, id, student_id, class_id, content, is_pinned,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_pin = self.session.prepare(f"""
            UPDATE {self.keyspace}.discussion_posts
            SET is_pinned = ?, updated_at = ?
            WHERE assessment_id = ? AND id = ?
        """)
        self._get_replies = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.discussion_replies WHERE post_id = ?"
        )
        self._insert_reply = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.discussion_replies
            (post_id, created_at, id, assessment_id, author_id, content)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

    # ==========================================================================
    # Access
    # ==========================================================================

    async def require_student_discussion(
        self, student_id: UUID, assessment_id: UUID
    ) -> Assessment:
        """Get a published discussion the student can take part in.

        Raises:
            NotFoundError: If the assessment is missing, unpublished or not
                a discussion
            NotEnrolledError: If the student is not actively enrolled
        """
        assessment = await self.catalog.find_assessment(assessment_id)
        if (
            not assessment
            or not assessment.is_published
            or assessment.type != AssessmentType.DISCUSSION.value
        ):
            raise NotFoundError("Discussion not found")
        await self.enrollments.require_active_enrollment(
            student_id, assessment.class_id
        )
        return assessment

    async def get_post(self, assessment_id: UUID, post_id: UUID) -> DiscussionPost:
        """Get post by assessment and ID.

        Raises:
            NotFoundError: If post doesn't exist on this discussion
        """
        result = await self.session.aexecute(self._get_post, [assessment_id, post_id])
        row = result.one()
        if not row:
            raise NotFoundError("Post not found")
        return DiscussionPost.from_row(row)

    # ==========================================================================
    # Posts
    # ==========================================================================

    async def list_threads(self, assessment_id: UUID) -> list[PostThread]:
        """Posts with replies; pinned first, then newest first."""
        result = await self.session.aexecute(self._get_posts, [assessment_id])
        posts = [DiscussionPost.from_row(row) for row in result]
        posts.sort(key=lambda p: p.created_at, reverse=True)
        posts.sort(key=lambda p: p.is_pinned, reverse=True)

        threads = []
        for post in posts:
            threads.append(PostThread(post=post, replies=await self.list_replies(post.id)))
        return threads

    async def create_post(
        self, assessment: Assessment, student_id: UUID, content: str
    ) -> tuple[DiscussionPost, Submission]:
        """Create the student's post and mark their submission SUBMITTED.

        Raises:
            ConflictError: If the student already posted to this discussion
        """
        submission = await self.grading.get_submission(assessment.id, student_id)
        if submission and submission.discussion_post_id:
            raise ConflictError(
                "You have already posted to this discussion", "already_posted"
            )

        post = DiscussionPost(
            assessment_id=assessment.id,
            student_id=student_id,
            class_id=assessment.class_id,
            content=content,
        )
        await self.session.aexecute(
            self._insert_post,
            [
                post.assessment_id,
                post.id,
                post.student_id,
                post.class_id,
                post.content,
                post.is_pinned,
                post.created_at,
                post.updated_at,
            ],
        )

        now = datetime.now(UTC)
        if submission is None:
            submission = Submission(
                assessment_id=assessment.id,
                student_id=student_id,
                class_id=assessment.class_id,
                submitted_at=now,
            )
        if submission.status != SubmissionStatus.GRADED.value:
            submission.status = SubmissionStatus.SUBMITTED.value
        submission.discussion_post_id = post.id
        submission.submitted_at = now
        submission.is_late = assessment.due_at is not None and now > assessment.due_at
        await self.grading.save_submission(submission)

        logger.info(
            "discussion_post_created",
            assessment_id=str(assessment.id),
            post_id=str(post.id),
            student_id=str(student_id),
        )
        return post, submission

    async def toggle_pin(self, assessment_id: UUID, post_id: UUID) -> DiscussionPost:
        """Flip the pinned flag of a post."""
        post = await self.get_post(assessment_id, post_id)
        post.is_pinned = not post.is_pinned
        post.updated_at = datetime.now(UTC)
        await self.session.aexecute(
            self._update_pin, [post.is_pinned, post.updated_at, assessment_id, post_id]
        )
        logger.info(
            "discussion_post_pin_toggled",
            post_id=str(post_id),
            is_pinned=post.is_pinned,
        )
        return post

    # ==========================================================================
    # Replies
    # ==========================================================================

    async def list_replies(self, post_id: UUID) -> list[DiscussionReply]:
        result = await self.session.aexecute(self._get_replies, [post_id])
        return [DiscussionReply.from_row(row) for row in result]

    async def _insert(self, reply: DiscussionReply) -> None:
        await self.session.aexecute(
            self._insert_reply,
            [
                reply.post_id,
                reply.created_at,
                reply.id,
                reply.assessment_id,
                reply.author_id,
                reply.content,
            ],
        )

    async def create_student_reply(
        self,
        assessment: Assessment,
        post_id: UUID,
        student_id: UUID,
        content: str,
    ) -> DiscussionReply:
        """Reply to a post as a student and count it toward participation.

        Raises:
            ForbiddenError: If peer replies are disabled
            NotFoundError: If post doesn't exist on this discussion
        """
        if not assessment.allow_peer_replies:
            raise ForbiddenError(
                "Peer replies are not allowed for this discussion",
                "peer_replies_disabled",
            )
        post = await self.get_post(assessment.id, post_id)

        reply = DiscussionReply(
            post_id=post.id,
            assessment_id=assessment.id,
            author_id=student_id,
            content=content,
        )
        await self._insert(reply)
        counted = await self.grading.increment_reply_count(assessment.id, student_id)

        logger.info(
            "discussion_reply_created",
            assessment_id=str(assessment.id),
            post_id=str(post_id),
            author_id=str(student_id),
            counted=counted,
        )
        return reply

    async def create_professor_reply(
        self,
        assessment_id: UUID,
        post_id: UUID,
        author_id: UUID,
        content: str,
    ) -> DiscussionReply:
        """Reply to a post as the class professor (not counted)."""
        post = await self.get_post(assessment_id, post_id)
        reply = DiscussionReply(
            post_id=post.id,
            assessment_id=assessment_id,
            author_id=author_id,
            content=content,
        )
        await self._insert(reply)
        return reply

    # ==========================================================================
    # Statistics
    # ==========================================================================

    async def stats(self, assessment: Assessment) -> DiscussionStats:
        """Participation and grading statistics for a discussion."""
        enrollments = await self.enrollments.list_class_enrollments(assessment.class_id)

        result = await self.session.aexecute(self._get_posts, [assessment.id])
        posts = [DiscussionPost.from_row(row) for row in result]

        total_replies = 0
        for post in posts:
            total_replies += len(await self.list_replies(post.id))

        submissions = await self.grading.list_assessment_submissions(assessment.id)
        # Every submission row is a post, LATE ones included
        graded = [s for s in submissions if s.is_graded]

        average_score = None
        if graded:
            average_score = sum((s.total_score for s in graded), Decimal(0)) / len(graded)

        return DiscussionStats(
            total_students=len(enrollments),
            total_posts=len(posts),
            total_replies=total_replies,
            students_with_posts=len({p.student_id for p in posts}),
            submitted_count=len(submissions),
            graded_count=len(graded),
            average_score=average_score,
            pinned_posts=sum(1 for p in posts if p.is_pinned),
        )
