"""Database models for completion tracking.

Cassandra table definitions for:
- Module item completions: one row per (student, item)
- Module completions: one row per (student, module)

Both tables are partitioned by (student_id, class_id) so the module view
reads a student's whole class progress in two queries. Rows are written
with ``IF NOT EXISTS`` and never updated or deleted.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from lms.catalog.models import ensure_utc_aware


MODULE_ITEM_COMPLETION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_item_completions (
    student_id UUID,
    class_id UUID,
    module_id UUID,
    module_item_id UUID,
    id UUID,
    completed_at TIMESTAMP,
    PRIMARY KEY ((student_id, class_id), module_id, module_item_id)
)
"""

MODULE_COMPLETION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.module_completions (
    student_id UUID,
    class_id UUID,
    module_id UUID,
    id UUID,
    completed_at TIMESTAMP,
    PRIMARY KEY ((student_id, class_id), module_id)
)
"""

PROGRESSION_TABLES_CQL = [
    MODULE_ITEM_COMPLETION_TABLE_CQL,
    MODULE_COMPLETION_TABLE_CQL,
]


class ModuleItemCompletion:
    """Record that a student completed a module item."""

    def __init__(
        self,
        student_id: UUID,
        class_id: UUID,
        module_id: UUID,
        module_item_id: UUID,
        id: UUID | None = None,
        completed_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.student_id = student_id
        self.class_id = class_id
        self.module_id = module_id
        self.module_item_id = module_item_id
        self.completed_at = ensure_utc_aware(completed_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "ModuleItemCompletion":
        """Create ModuleItemCompletion instance from Cassandra row."""
        return cls(
            id=row.id,
            student_id=row.student_id,
            class_id=row.class_id,
            module_id=row.module_id,
            module_item_id=row.module_item_id,
            completed_at=row.completed_at,
        )

    def __repr__(self) -> str:
        return f"<ModuleItemCompletion student={self.student_id} item={self.module_item_id}>"


class ModuleCompletion:
    """Record that a student completed every required item of a module."""

    def __init__(
        self,
        student_id: UUID,
        class_id: UUID,
        module_id: UUID,
        id: UUID | None = None,
        completed_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.student_id = student_id
        self.class_id = class_id
        self.module_id = module_id
        self.completed_at = ensure_utc_aware(completed_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "ModuleCompletion":
        """Create ModuleCompletion instance from Cassandra row."""
        return cls(
            id=row.id,
            student_id=row.student_id,
            class_id=row.class_id,
            module_id=row.module_id,
            completed_at=row.completed_at,
        )

    def __repr__(self) -> str:
        return f"<ModuleCompletion student={self.student_id} module={self.module_id}>"
