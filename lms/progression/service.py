"""Progression service layer.

Business logic for:
- Student module view (lock state, progress, completion per module)
- Idempotent module item completion
- Module completion when every required item is done

Uniqueness of completions is enforced by the store: both completion
tables are written with lightweight transactions and a not-applied
result means another request got there first.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from lms.core.context import set_class_id
from lms.core.errors import ConflictError, NotFoundError

from .engine import ModuleView, build_module_views, required_items_complete
from .models import ModuleCompletion, ModuleItemCompletion


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from lms.catalog.service import CatalogService
    from lms.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


@dataclass
class CompletionResult:
    completion: ModuleItemCompletion
    module_completed: bool


class ProgressionService:
    """Service for module progression and completion tracking."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog_service: "CatalogService",
        enrollment_service: "EnrollmentService",
        completion_check_applies_visibility_filter: bool = False,
    ):
        """Initialize with Cassandra session and collaborating services.

        Args:
            completion_check_applies_visibility_filter: When True, assessment
                items hidden from the student (dangling or unpublished
                assessment) are ignored by the required-items check, the same
                way they are ignored by the progress percentage.
        """
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog_service
        self.enrollments = enrollment_service
        self.apply_visibility_filter = completion_check_applies_visibility_filter
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Item completions
        self._get_item_completion = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_item_completions
            WHERE student_id = ? AND class_id = ? AND module_id = ? AND module_item_id = ?
        """)
        self._get_module_item_completions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_item_completions
            WHERE student_id = ? AND class_id = ? AND module_id = ?
        """)
        self._get_class_item_completions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_item_completions
            WHERE student_id = ? AND class_id = ?
        """)
        self._insert_item_completion = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.module_item_completions
            (student_id, class_id, module_id, module_item_id, id, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        # Module completions
        self._get_module_completion = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_completions
            WHERE student_id = ? AND class_id = ? AND module_id = ?
        """)
        self._get_class_module_completions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_completions
            WHERE student_id = ? AND class_id = ?
        """)
        self._insert_module_completion = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.module_completions
            (student_id, class_id, module_id, id, completed_at)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    # ==========================================================================
    # Module View
    # ==========================================================================

    async def get_class_modules(
        self,
        student_id: UUID,
        class_id: UUID,
        now: datetime | None = None,
    ) -> list[ModuleView]:
        """Compute the student's module view for a class.

        Raises:
            NotFoundError: If the class doesn't exist
            NotEnrolledError: If the student has no active enrollment
        """
        if not await self.catalog.get_class(class_id):
            raise NotFoundError("Class not found")
        await self.enrollments.require_active_enrollment(student_id, class_id)

        modules = await self.catalog.list_modules(class_id)
        items = await self.catalog.list_class_items(class_id)
        assessments = {a.id: a for a in await self.catalog.list_assessments(class_id)}

        result = await self.session.aexecute(
            self._get_class_item_completions, [student_id, class_id]
        )
        completed_item_ids = {row.module_item_id for row in result}

        result = await self.session.aexecute(
            self._get_class_module_completions, [student_id, class_id]
        )
        completed_module_ids = {row.module_id for row in result}

        return build_module_views(
            modules=modules,
            items=items,
            assessments=assessments,
            completed_item_ids=completed_item_ids,
            completed_module_ids=completed_module_ids,
            now=now or datetime.now(UTC),
        )

    # ==========================================================================
    # Completion
    # ==========================================================================

    async def get_item_completion(
        self,
        student_id: UUID,
        class_id: UUID,
        module_id: UUID,
        item_id: UUID,
    ) -> ModuleItemCompletion | None:
        result = await self.session.aexecute(
            self._get_item_completion, [student_id, class_id, module_id, item_id]
        )
        row = result.one()
        return ModuleItemCompletion.from_row(row) if row else None

    async def get_module_completion(
        self, student_id: UUID, class_id: UUID, module_id: UUID
    ) -> ModuleCompletion | None:
        result = await self.session.aexecute(
            self._get_module_completion, [student_id, class_id, module_id]
        )
        row = result.one()
        return ModuleCompletion.from_row(row) if row else None

    async def complete_item(self, student_id: UUID, item_id: UUID) -> CompletionResult:
        """Mark a module item complete for a student.

        Idempotent: a second call returns the stored completion with
        ``module_completed=False``. Lock state is not checked here.

        Raises:
            NotFoundError: If the item doesn't exist or is unpublished
            NotEnrolledError: If the student has no active enrollment in the
                item's class
            ConflictError: If a concurrent insert won but its row is not yet
                readable
        """
        item = await self.catalog.get_item(item_id)
        if not item or not item.is_published:
            raise NotFoundError("Module item not found")

        set_class_id(item.class_id)
        await self.enrollments.require_active_enrollment(student_id, item.class_id)

        existing = await self.get_item_completion(
            student_id, item.class_id, item.module_id, item.id
        )
        if existing:
            return CompletionResult(completion=existing, module_completed=False)

        completion = ModuleItemCompletion(
            student_id=student_id,
            class_id=item.class_id,
            module_id=item.module_id,
            module_item_id=item.id,
        )
        result = await self.session.aexecute(
            self._insert_item_completion,
            [
                completion.student_id,
                completion.class_id,
                completion.module_id,
                completion.module_item_id,
                completion.id,
                completion.completed_at,
            ],
        )
        if not result.was_applied:
            # Concurrent request inserted first; the result carries its row
            row = result.one()
            winner = (
                ModuleItemCompletion.from_row(row)
                if row
                else await self.get_item_completion(
                    student_id, item.class_id, item.module_id, item.id
                )
            )
            if winner is None:
                raise ConflictError(
                    "Completion is being recorded, retry the request",
                    code="completion_in_progress",
                )
            return CompletionResult(completion=winner, module_completed=False)

        logger.info(
            "module_item_completed",
            student_id=str(student_id),
            class_id=str(item.class_id),
            module_id=str(item.module_id),
            item_id=str(item.id),
        )

        all_complete = await self._all_required_complete(
            student_id, item.class_id, item.module_id
        )
        if all_complete:
            await self._record_module_completion(
                student_id, item.class_id, item.module_id
            )

        return CompletionResult(completion=completion, module_completed=all_complete)

    async def _all_required_complete(
        self, student_id: UUID, class_id: UUID, module_id: UUID
    ) -> bool:
        module_items = await self.catalog.list_module_items(class_id, module_id)

        result = await self.session.aexecute(
            self._get_module_item_completions, [student_id, class_id, module_id]
        )
        completed_item_ids = {row.module_item_id for row in result}

        assessments = None
        if self.apply_visibility_filter:
            assessments = {
                a.id: a for a in await self.catalog.list_assessments(class_id)
            }

        return required_items_complete(module_items, completed_item_ids, assessments)

    async def _record_module_completion(
        self, student_id: UUID, class_id: UUID, module_id: UUID
    ) -> None:
        """Insert the ModuleCompletion unless one exists.

        There is no rollback: if this write fails the item stays complete
        and the next completion in the module records it.
        """
        if await self.get_module_completion(student_id, class_id, module_id):
            return

        module_completion = ModuleCompletion(
            student_id=student_id,
            class_id=class_id,
            module_id=module_id,
        )
        result = await self.session.aexecute(
            self._insert_module_completion,
            [
                module_completion.student_id,
                module_completion.class_id,
                module_completion.module_id,
                module_completion.id,
                module_completion.completed_at,
            ],
        )
        if not result.was_applied:
            logger.info(
                "module_completion_conflict",
                student_id=str(student_id),
                module_id=str(module_id),
            )
            return

        logger.info(
            "module_completed",
            student_id=str(student_id),
            class_id=str(class_id),
            module_id=str(module_id),
        )
