"""Database models for the class catalog.

Cassandra table definitions for:
- Classes: one offering of a course, joined by a unique class code
- Modules: ordered containers of items inside a class
- Module items: assessments, external links and static pages
- Assessments: gradeable work inside a class

Modules, items and assessments are partitioned by class so the student
module view reads a whole class with one query per table. Lookup tables
resolve an item or assessment from its id alone.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class ItemType(str, Enum):
    """Module item type."""

    ASSESSMENT = "ASSESSMENT"
    EXTERNAL_LINK = "EXTERNAL_LINK"
    PAGE = "PAGE"


class AssessmentType(str, Enum):
    """Assessment category (also the gradebook column grouping)."""

    INTERACTIVE_LESSON = "INTERACTIVE_LESSON"
    LAB = "LAB"
    EXAM = "EXAM"
    QUIZ = "QUIZ"
    DISCUSSION = "DISCUSSION"


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CLASS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.classes (
    id UUID PRIMARY KEY,
    title TEXT,
    course_code TEXT,
    term TEXT,
    year INT,
    section TEXT,
    class_code TEXT,
    professor_id UUID,
    is_active BOOLEAN,
    created_at TIMESTAMP
)
"""

# Unique join codes: written with IF NOT EXISTS before the class row
CLASSES_BY_CODE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.classes_by_code (
    class_code TEXT PRIMARY KEY,
    class_id UUID
)
"""

CLASSES_BY_PROFESSOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.classes_by_professor (
    professor_id UUID,
    class_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY (professor_id, class_id)
)
"""

MODULE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.modules (
    class_id UUID,
    id UUID,
    title TEXT,
    description TEXT,
    order_index INT,
    is_published BOOLEAN,
    unlock_at TIMESTAMP,
    prerequisite_ids SET<UUID>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (class_id, id)
)
"""

MODULE_ITEM_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_items (
    class_id UUID,
    module_id UUID,
    id UUID,
    item_type TEXT,
    title TEXT,
    order_index INT,
    is_published BOOLEAN,
    is_required BOOLEAN,
    url TEXT,
    content TEXT,
    assessment_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY (class_id, module_id, id)
)
"""

MODULE_ITEMS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_items_by_id (
    id UUID PRIMARY KEY,
    class_id UUID,
    module_id UUID
)
"""

ASSESSMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assessments (
    class_id UUID,
    id UUID,
    title TEXT,
    description TEXT,
    type TEXT,
    max_points DECIMAL,
    is_published BOOLEAN,
    due_at TIMESTAMP,
    auto_complete_enabled BOOLEAN,
    minimum_reply_count INT,
    allow_peer_replies BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY (class_id, id)
)
"""

ASSESSMENTS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assessments_by_id (
    id UUID PRIMARY KEY,
    class_id UUID
)
"""

CATALOG_TABLES_CQL = [
    CLASS_TABLE_CQL,
    CLASSES_BY_CODE_TABLE_CQL,
    CLASSES_BY_PROFESSOR_TABLE_CQL,
    MODULE_TABLE_CQL,
    MODULE_ITEM_TABLE_CQL,
    MODULE_ITEMS_BY_ID_TABLE_CQL,
    ASSESSMENT_TABLE_CQL,
    ASSESSMENTS_BY_ID_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class CourseClass:
    """One offering of a course, owned by a professor."""

    def __init__(
        self,
        title: str,
        class_code: str,
        professor_id: UUID,
        course_code: str | None = None,
        term: str | None = None,
        year: int | None = None,
        section: str | None = None,
        is_active: bool = True,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title
        self.course_code = course_code
        self.term = term
        self.year = year
        self.section = section
        self.class_code = class_code.upper()
        self.professor_id = professor_id
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "CourseClass":
        """Create CourseClass instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title,
            course_code=row.course_code,
            term=row.term,
            year=row.year,
            section=row.section,
            class_code=row.class_code,
            professor_id=row.professor_id,
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<CourseClass {self.class_code} {self.id}>"


class Module:
    """Ordered container of learning items inside a class.

    Attributes:
        prerequisite_ids: Modules of the same class that must be completed
            before this one unlocks. Stale ids are tolerated.
        unlock_at: Module stays locked until this instant when set.
    """

    def __init__(
        self,
        class_id: UUID,
        title: str,
        order_index: int = 0,
        description: str | None = None,
        is_published: bool = False,
        unlock_at: datetime | None = None,
        prerequisite_ids: set[UUID] | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.class_id = class_id
        self.title = title
        self.description = description
        self.order_index = order_index
        self.is_published = is_published
        self.unlock_at = ensure_utc_aware(unlock_at)
        self.prerequisite_ids = set(prerequisite_ids or ())
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "Module":
        """Create Module instance from Cassandra row."""
        return cls(
            id=row.id,
            class_id=row.class_id,
            title=row.title,
            description=row.description,
            order_index=row.order_index or 0,
            is_published=bool(row.is_published),
            unlock_at=row.unlock_at,
            prerequisite_ids=row.prerequisite_ids,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Module {self.title!r} #{self.order_index}>"


class ModuleItem:
    """Single unit of work inside a module.

    ASSESSMENT items point at an assessment through ``assessment_id``;
    the reference can dangle after the assessment is removed.
    """

    def __init__(
        self,
        class_id: UUID,
        module_id: UUID,
        item_type: str,
        title: str,
        order_index: int = 0,
        is_published: bool = False,
        is_required: bool = True,
        url: str | None = None,
        content: str | None = None,
        assessment_id: UUID | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.class_id = class_id
        self.module_id = module_id
        self.item_type = item_type
        self.title = title
        self.order_index = order_index
        self.is_published = is_published
        self.is_required = is_required
        self.url = url
        self.content = content
        self.assessment_id = assessment_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def is_assessment(self) -> bool:
        return self.item_type == ItemType.ASSESSMENT.value

    @classmethod
    def from_row(cls, row: Any) -> "ModuleItem":
        """Create ModuleItem instance from Cassandra row."""
        return cls(
            id=row.id,
            class_id=row.class_id,
            module_id=row.module_id,
            item_type=row.item_type,
            title=row.title,
            order_index=row.order_index or 0,
            is_published=bool(row.is_published),
            is_required=row.is_required if row.is_required is not None else True,
            url=row.url,
            content=row.content,
            assessment_id=row.assessment_id,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<ModuleItem {self.item_type} {self.title!r}>"


class Assessment:
    """Gradeable work inside a class.

    Discussion assessments carry the auto-grading settings
    (``auto_complete_enabled``, ``minimum_reply_count``) and whether
    students may reply to each other's posts.
    """

    def __init__(
        self,
        class_id: UUID,
        title: str,
        type: str,
        max_points: Decimal,
        description: str | None = None,
        is_published: bool = False,
        due_at: datetime | None = None,
        auto_complete_enabled: bool = False,
        minimum_reply_count: int | None = None,
        allow_peer_replies: bool = True,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.class_id = class_id
        self.title = title
        self.description = description
        self.type = type
        self.max_points = Decimal(max_points)
        self.is_published = is_published
        self.due_at = ensure_utc_aware(due_at)
        self.auto_complete_enabled = auto_complete_enabled
        self.minimum_reply_count = minimum_reply_count
        self.allow_peer_replies = allow_peer_replies
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Assessment":
        """Create Assessment instance from Cassandra row."""
        return cls(
            id=row.id,
            class_id=row.class_id,
            title=row.title,
            description=row.description,
            type=row.type,
            max_points=row.max_points or Decimal(0),
            is_published=bool(row.is_published),
            due_at=row.due_at,
            auto_complete_enabled=bool(row.auto_complete_enabled),
            minimum_reply_count=row.minimum_reply_count,
            allow_peer_replies=(
                row.allow_peer_replies if row.allow_peer_replies is not None else True
            ),
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Assessment {self.type} {self.title!r} /{self.max_points}>"
