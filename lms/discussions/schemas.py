"""Pydantic schemas for discussion boards."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from .models import DiscussionPost, DiscussionReply
from .service import DiscussionStats, PostThread


POST_MIN_LENGTH = 50
CONTENT_MAX_LENGTH = 10000


class CreatePostRequest(BaseModel):
    """Discussion post request."""

    content: str = Field(..., min_length=POST_MIN_LENGTH, max_length=CONTENT_MAX_LENGTH)


class CreateReplyRequest(BaseModel):
    """Discussion reply request."""

    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)


class ReplyResponse(BaseModel):
    """Discussion reply response."""

    id: UUID
    post_id: UUID
    author_id: UUID
    content: str
    created_at: datetime

    @classmethod
    def from_entity(cls, reply: DiscussionReply) -> "ReplyResponse":
        return cls(
            id=reply.id,
            post_id=reply.post_id,
            author_id=reply.author_id,
            content=reply.content,
            created_at=reply.created_at,
        )


class PostResponse(BaseModel):
    """Discussion post response."""

    id: UUID
    assessment_id: UUID
    student_id: UUID
    content: str
    is_pinned: bool
    created_at: datetime
    reply_count: int = 0
    replies: list[ReplyResponse] = []

    @classmethod
    def from_entity(
        cls, post: DiscussionPost, replies: list[DiscussionReply] | None = None
    ) -> "PostResponse":
        replies = replies or []
        return cls(
            id=post.id,
            assessment_id=post.assessment_id,
            student_id=post.student_id,
            content=post.content,
            is_pinned=post.is_pinned,
            created_at=post.created_at,
            reply_count=len(replies),
            replies=[ReplyResponse.from_entity(r) for r in replies],
        )

    @classmethod
    def from_thread(cls, thread: PostThread) -> "PostResponse":
        return cls.from_entity(thread.post, thread.replies)


class PostListResponse(BaseModel):
    """Discussion board: posts (pinned first) and the caller's reply count."""

    posts: list[PostResponse]
    reply_count: int = 0


class PinResponse(BaseModel):
    """Pin toggle result."""

    success: bool = True
    message: str
    is_pinned: bool


class DiscussionStatsResponse(BaseModel):
    """Participation and grading statistics."""

    total_students: int
    total_posts: int
    total_replies: int
    students_with_posts: int
    participation_rate: float
    submitted_count: int
    graded_count: int
    ungraded_count: int
    average_score: Decimal | None = None
    pinned_posts: int

    @classmethod
    def from_stats(cls, stats: DiscussionStats) -> "DiscussionStatsResponse":
        return cls(
            total_students=stats.total_students,
            total_posts=stats.total_posts,
            total_replies=stats.total_replies,
            students_with_posts=stats.students_with_posts,
            participation_rate=stats.participation_rate,
            submitted_count=stats.submitted_count,
            graded_count=stats.graded_count,
            ungraded_count=stats.ungraded_count,
            average_score=stats.average_score,
            pinned_posts=stats.pinned_posts,
        )
