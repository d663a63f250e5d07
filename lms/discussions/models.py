"""Database models for discussion boards.

Cassandra table definitions for:
- Posts: partitioned by assessment (one board per discussion assessment)
- Replies: partitioned by post, clustered by creation time
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from lms.catalog.models import ensure_utc_aware


DISCUSSION_POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.discussion_posts (
    assessment_id UUID,
    id UUID,
    student_id UUID,
    class_id UUID,
    content TEXT,
    is_pinned BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (assessment_id, id)
)
"""

DISCUSSION_REPLY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.discussion_replies (
    post_id UUID,
    created_at TIMESTAMP,
    id UUID,
    assessment_id UUID,
    author_id UUID,
    content TEXT,
    PRIMARY KEY (post_id, created_at, id)
) WITH CLUSTERING ORDER BY (created_at ASC, id ASC)
"""

DISCUSSIONS_TABLES_CQL = [
    DISCUSSION_POST_TABLE_CQL,
    DISCUSSION_REPLY_TABLE_CQL,
]


class DiscussionPost:
    """A student's top-level post on a discussion assessment."""

    def __init__(
        self,
        assessment_id: UUID,
        student_id: UUID,
        class_id: UUID,
        content: str,
        is_pinned: bool = False,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.assessment_id = assessment_id
        self.student_id = student_id
        self.class_id = class_id
        self.content = content
        self.is_pinned = is_pinned
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "DiscussionPost":
        """Create DiscussionPost instance from Cassandra row."""
        return cls(
            id=row.id,
            assessment_id=row.assessment_id,
            student_id=row.student_id,
            class_id=row.class_id,
            content=row.content,
            is_pinned=bool(row.is_pinned),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<DiscussionPost {self.id} pinned={self.is_pinned}>"


class DiscussionReply:
    """Reply to a discussion post."""

    def __init__(
        self,
        post_id: UUID,
        assessment_id: UUID,
        author_id: UUID,
        content: str,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.post_id = post_id
        self.assessment_id = assessment_id
        self.author_id = author_id
        self.content = content
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "DiscussionReply":
        """Create DiscussionReply instance from Cassandra row."""
        return cls(
            id=row.id,
            post_id=row.post_id,
            assessment_id=row.assessment_id,
            author_id=row.author_id,
            content=row.content,
            created_at=row.created_at,
        )
