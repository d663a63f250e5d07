"""Catalog service layer.

Business logic for:
- Class creation with generated join codes
- Module and module item authoring and reordering
- Assessment authoring
- Read access used by progression, grading and discussions
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from lms.auth.permissions import can_manage_class
from lms.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

from .models import (
    Assessment,
    AssessmentType,
    CourseClass,
    ItemType,
    Module,
    ModuleItem,
    ensure_utc_aware,
)
from .schemas import ReorderEntry


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from lms.auth.schemas import UserResponse

logger = structlog.get_logger(__name__)

TERM_ABBREVIATIONS = {
    "Fall": "FA",
    "Spring": "SP",
    "Summer": "SU",
    "Winter": "WI",
}


def generate_class_code(
    professor_code: str,
    course_code: str,
    term: str,
    year: int,
    section: str,
) -> str:
    """Build a class join code.

    Format: ``{PROFESSOR}-{COURSE}-{TERM}{YY}-{SECTION}``, e.g. ``ALI-CS101-FA25-01``.

    Raises:
        ValidationError: If term is not a known academic term
    """
    term_abbr = TERM_ABBREVIATIONS.get(term)
    if term_abbr is None:
        msg = f"Invalid term: {term}. Must be one of: {', '.join(TERM_ABBREVIATIONS)}"
        raise ValidationError(msg)

    code = f"{professor_code}-{course_code}-{term_abbr}{str(year)[-2:]}-{section.zfill(2)}"
    return code.upper()


def parse_reorder_entries(raw: Any) -> list[ReorderEntry]:
    """Validate a reorder payload.

    Raises:
        ValidationError: If payload is not an array of ``{id, order_index}``
    """
    if not isinstance(raw, list):
        raise ValidationError("items must be an array")

    entries = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            msg = f"items[{position}] must be an object with id and order_index"
            raise ValidationError(msg)
        try:
            entries.append(ReorderEntry.model_validate(entry))
        except ValueError as e:
            msg = f"items[{position}] is invalid: id and non-negative order_index required"
            raise ValidationError(msg) from e
    return entries


# ==============================================================================
# Catalog Service
# ==============================================================================


class CatalogService:
    """Service for classes, modules, items and assessments."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Classes
        self._get_class = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.classes WHERE id = ?"
        )
        self._get_class_by_code = self.session.prepare(
            f"SELECT class_id FROM {self.keyspace}.classes_by_code WHERE class_code = ?"
        )
        self._claim_class_code = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.classes_by_code (class_code, class_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)
        self._insert_class = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.classes
            (id, title, course_code, term, year, section, class_code,
             professor_id, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_class_by_professor = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.classes_by_professor
            (professor_id, class_id, created_at)
            VALUES (?, ?, ?)
        """)
        self._get_classes_by_professor = self.session.prepare(
            f"SELECT class_id FROM {self.keyspace}.classes_by_professor WHERE professor_id = ?"
        )

        # Modules
        self._get_class_modules = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.modules WHERE class_id = ?"
        )
        self._get_module = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.modules WHERE class_id = ? AND id = ?"
        )
        self._upsert_module = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.modules
            (class_id, id, title, description, order_index, is_published,
             unlock_at, prerequisite_ids, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_module_order = self.session.prepare(f"""
            UPDATE {self.keyspace}.modules
            SET order_index = ?, updated_at = ?
            WHERE class_id = ? AND id = ?
        """)

        # Module items
        self._get_class_items = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.module_items WHERE class_id = ?"
        )
        self._get_module_items = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_items
            WHERE class_id = ? AND module_id = ?
        """)
        self._get_item = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.module_items
            WHERE class_id = ? AND module_id = ? AND id = ?
        """)
        self._get_item_location = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.module_items_by_id WHERE id = ?"
        )
        self._insert_item = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.module_items
            (class_id, module_id, id, item_type, title, order_index,
             is_published, is_required, url, content, assessment_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_item_location = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.module_items_by_id (id, class_id, module_id)
            VALUES (?, ?, ?)
        """)
        self._update_item_order = self.session.prepare(f"""
            UPDATE {self.keyspace}.module_items
            SET order_index = ?
            WHERE class_id = ? AND module_id = ? AND id = ?
        """)

        # Assessments
        self._get_class_assessments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.assessments WHERE class_id = ?"
        )
        self._get_assessment = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.assessments WHERE class_id = ? AND id = ?"
        )
        self._get_assessment_location = self.session.prepare(
            f"SELECT class_id FROM {self.keyspace}.assessments_by_id WHERE id = ?"
        )
        self._insert_assessment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assessments
            (class_id, id, title, description, type, max_points, is_published,
             due_at, auto_complete_enabled, minimum_reply_count,
             allow_peer_replies, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_assessment_location = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assessments_by_id (id, class_id)
            VALUES (?, ?)
        """)

    # ==========================================================================
    # Class Operations
    # ==========================================================================

    async def get_class(self, class_id: UUID) -> CourseClass | None:
        """Get class by ID."""
        result = await self.session.aexecute(self._get_class, [class_id])
        row = result.one()
        return CourseClass.from_row(row) if row else None

    async def get_class_by_code(self, class_code: str) -> CourseClass | None:
        """Get class by join code (case-insensitive)."""
        result = await self.session.aexecute(
            self._get_class_by_code, [class_code.strip().upper()]
        )
        row = result.one()
        if not row:
            return None
        return await self.get_class(row.class_id)

    async def create_class(
        self,
        professor_id: UUID,
        title: str,
        professor_code: str,
        course_code: str,
        term: str,
        year: int,
        section: str,
    ) -> CourseClass:
        """Create a class owned by the professor.

        Raises:
            ValidationError: If term is unknown
            ConflictError: If the generated class code is already taken
        """
        class_code = generate_class_code(professor_code, course_code, term, year, section)
        course_class = CourseClass(
            title=title.strip(),
            class_code=class_code,
            professor_id=professor_id,
            course_code=course_code.upper(),
            term=term,
            year=year,
            section=section.zfill(2),
        )

        # The code lookup row is the uniqueness guard
        result = await self.session.aexecute(
            self._claim_class_code, [class_code, course_class.id]
        )
        if not result.was_applied:
            msg = f"Class code {class_code} already exists. Try a different section number."
            raise ConflictError(msg, "class_code_taken")

        await self.session.aexecute(
            self._insert_class,
            [
                course_class.id,
                course_class.title,
                course_class.course_code,
                course_class.term,
                course_class.year,
                course_class.section,
                course_class.class_code,
                course_class.professor_id,
                course_class.is_active,
                course_class.created_at,
            ],
        )
        await self.session.aexecute(
            self._insert_class_by_professor,
            [professor_id, course_class.id, course_class.created_at],
        )

        logger.info(
            "class_created",
            class_id=str(course_class.id),
            class_code=class_code,
            professor_id=str(professor_id),
        )
        return course_class

    async def list_professor_classes(self, professor_id: UUID) -> list[CourseClass]:
        """List classes owned by a professor, newest first."""
        result = await self.session.aexecute(
            self._get_classes_by_professor, [professor_id]
        )
        classes = []
        for row in result:
            course_class = await self.get_class(row.class_id)
            if course_class:
                classes.append(course_class)
        classes.sort(key=lambda c: c.created_at, reverse=True)
        return classes

    async def require_managed_class(
        self, class_id: UUID, user: "UserResponse"
    ) -> CourseClass:
        """Get a class the user may author.

        Raises:
            NotFoundError: If class doesn't exist
            ForbiddenError: If user is neither admin nor the class professor
        """
        course_class = await self.get_class(class_id)
        if not course_class:
            raise NotFoundError("Class not found")
        if not can_manage_class(user.id, user.role, course_class.professor_id):
            raise ForbiddenError("You do not manage this class")
        return course_class

    # ==========================================================================
    # Module Operations
    # ==========================================================================

    async def list_modules(self, class_id: UUID) -> list[Module]:
        """List all modules of a class ordered by ``order_index``."""
        result = await self.session.aexecute(self._get_class_modules, [class_id])
        modules = [Module.from_row(row) for row in result]
        modules.sort(key=lambda m: m.order_index)
        return modules

    async def get_module(self, class_id: UUID, module_id: UUID) -> Module | None:
        """Get module by class and ID."""
        result = await self.session.aexecute(self._get_module, [class_id, module_id])
        row = result.one()
        return Module.from_row(row) if row else None

    async def _save_module(self, module: Module) -> None:
        await self.session.aexecute(
            self._upsert_module,
            [
                module.class_id,
                module.id,
                module.title,
                module.description,
                module.order_index,
                module.is_published,
                module.unlock_at,
                module.prerequisite_ids or None,
                module.created_at,
                module.updated_at,
            ],
        )

    async def create_module(
        self,
        class_id: UUID,
        title: str,
        description: str | None = None,
        order_index: int | None = None,
        is_published: bool = False,
        unlock_at: datetime | None = None,
        prerequisite_ids: list[UUID] | None = None,
    ) -> Module:
        """Create a module at the end of the class (or at ``order_index``).

        Raises:
            ValidationError: If a prerequisite is not a module of this class
        """
        existing = await self.list_modules(class_id)
        if order_index is None:
            order_index = max((m.order_index for m in existing), default=-1) + 1

        module = Module(
            class_id=class_id,
            title=title.strip(),
            description=description,
            order_index=order_index,
            is_published=is_published,
            unlock_at=unlock_at,
            prerequisite_ids=set(prerequisite_ids or ()),
        )
        self._check_prerequisites(module, {m.id for m in existing})

        await self._save_module(module)
        logger.info(
            "module_created",
            class_id=str(class_id),
            module_id=str(module.id),
            prerequisites=len(module.prerequisite_ids),
        )
        return module

    async def update_module(
        self, class_id: UUID, module_id: UUID, changes: dict[str, Any]
    ) -> Module:
        """Apply a partial update to a module.

        Raises:
            NotFoundError: If module doesn't exist in the class
            ValidationError: If the module would list itself (or a module of
                another class) as a prerequisite
        """
        module = await self.get_module(class_id, module_id)
        if not module:
            raise NotFoundError("Module not found")

        if "title" in changes and changes["title"] is not None:
            module.title = changes["title"].strip()
        if "description" in changes:
            module.description = changes["description"]
        if "is_published" in changes and changes["is_published"] is not None:
            module.is_published = changes["is_published"]
        if "unlock_at" in changes:
            module.unlock_at = ensure_utc_aware(changes["unlock_at"])
        if "prerequisite_ids" in changes and changes["prerequisite_ids"] is not None:
            module.prerequisite_ids = set(changes["prerequisite_ids"])
            siblings = {m.id for m in await self.list_modules(class_id)}
            self._check_prerequisites(module, siblings)

        module.updated_at = datetime.now(UTC)
        await self._save_module(module)
        return module

    @staticmethod
    def _check_prerequisites(module: Module, class_module_ids: set[UUID]) -> None:
        if module.id in module.prerequisite_ids:
            raise ValidationError("A module cannot be its own prerequisite")
        unknown = module.prerequisite_ids - class_module_ids
        if unknown:
            raise ValidationError("Prerequisite modules must belong to this class")

    async def reorder_modules(self, class_id: UUID, raw_items: Any) -> int:
        """Set new ``order_index`` values for modules of a class.

        Raises:
            ValidationError: If payload is not an array of entries
            NotFoundError: If an id is not a module of this class
        """
        entries = parse_reorder_entries(raw_items)
        known = {m.id for m in await self.list_modules(class_id)}
        missing = [str(e.id) for e in entries if e.id not in known]
        if missing:
            msg = f"Modules not found in this class: {', '.join(missing)}"
            raise NotFoundError(msg)

        now = datetime.now(UTC)
        for entry in entries:
            await self.session.aexecute(
                self._update_module_order,
                [entry.order_index, now, class_id, entry.id],
            )

        logger.info("modules_reordered", class_id=str(class_id), count=len(entries))
        return len(entries)

    # ==========================================================================
    # Module Item Operations
    # ==========================================================================

    async def list_class_items(self, class_id: UUID) -> list[ModuleItem]:
        """List every item of every module in a class."""
        result = await self.session.aexecute(self._get_class_items, [class_id])
        return [ModuleItem.from_row(row) for row in result]

    async def list_module_items(
        self, class_id: UUID, module_id: UUID
    ) -> list[ModuleItem]:
        """List items of one module ordered by ``order_index``."""
        result = await self.session.aexecute(
            self._get_module_items, [class_id, module_id]
        )
        items = [ModuleItem.from_row(row) for row in result]
        items.sort(key=lambda i: i.order_index)
        return items

    async def get_item(self, item_id: UUID) -> ModuleItem | None:
        """Get module item by ID alone (via lookup table)."""
        result = await self.session.aexecute(self._get_item_location, [item_id])
        location = result.one()
        if not location:
            return None
        return await self.get_module_item(
            location.class_id, location.module_id, item_id
        )

    async def _save_item(self, item: ModuleItem) -> None:
        await self.session.aexecute(
            self._insert_item,
            [
                item.class_id,
                item.module_id,
                item.id,
                item.item_type,
                item.title,
                item.order_index,
                item.is_published,
                item.is_required,
                item.url,
                item.content,
                item.assessment_id,
                item.created_at,
            ],
        )

    async def create_item(
        self,
        class_id: UUID,
        module_id: UUID,
        item_type: ItemType,
        title: str,
        order_index: int | None = None,
        is_published: bool = False,
        is_required: bool = True,
        url: str | None = None,
        content: str | None = None,
        assessment_id: UUID | None = None,
    ) -> ModuleItem:
        """Create an item inside a module.

        Raises:
            NotFoundError: If module, or referenced assessment, is not in the class
            ValidationError: If type-specific fields are missing
        """
        module = await self.get_module(class_id, module_id)
        if not module:
            raise NotFoundError("Module not found")

        if item_type == ItemType.ASSESSMENT:
            if assessment_id is None:
                raise ValidationError("assessment_id is required for ASSESSMENT items")
            if not await self.get_assessment(class_id, assessment_id):
                raise NotFoundError("Assessment not found in this class")
        elif item_type == ItemType.EXTERNAL_LINK and not url:
            raise ValidationError("url is required for EXTERNAL_LINK items")

        if order_index is None:
            existing = await self.list_module_items(class_id, module_id)
            order_index = max((i.order_index for i in existing), default=-1) + 1

        item = ModuleItem(
            class_id=class_id,
            module_id=module_id,
            item_type=item_type.value,
            title=title.strip(),
            order_index=order_index,
            is_published=is_published,
            is_required=is_required,
            url=url if item_type == ItemType.EXTERNAL_LINK else None,
            content=content if item_type == ItemType.PAGE else None,
            assessment_id=assessment_id if item_type == ItemType.ASSESSMENT else None,
        )

        # Dual write: main table + id lookup
        await self._save_item(item)
        await self.session.aexecute(
            self._insert_item_location, [item.id, item.class_id, item.module_id]
        )

        logger.info(
            "module_item_created",
            class_id=str(class_id),
            module_id=str(module_id),
            item_id=str(item.id),
            item_type=item.item_type,
        )
        return item

    async def get_module_item(
        self, class_id: UUID, module_id: UUID, item_id: UUID
    ) -> ModuleItem | None:
        """Get module item by class, module and ID."""
        result = await self.session.aexecute(
            self._get_item, [class_id, module_id, item_id]
        )
        row = result.one()
        return ModuleItem.from_row(row) if row else None

    async def update_item(
        self,
        class_id: UUID,
        module_id: UUID,
        item_id: UUID,
        changes: dict[str, Any],
    ) -> ModuleItem:
        """Apply a partial update to a module item.

        The item type is fixed at creation; ``url``, ``content`` and
        ``assessment_id`` may only be changed on items of the matching type.

        Raises:
            NotFoundError: If the item, or a new assessment, is not in the class
            ValidationError: If a field does not apply to the item type or a
                required type-specific field is cleared
        """
        item = await self.get_module_item(class_id, module_id, item_id)
        if not item:
            raise NotFoundError("Module item not found")

        type_fields = {
            ItemType.EXTERNAL_LINK.value: "url",
            ItemType.PAGE.value: "content",
            ItemType.ASSESSMENT.value: "assessment_id",
        }
        for field_name in ("url", "content", "assessment_id"):
            if field_name in changes and type_fields[item.item_type] != field_name:
                msg = f"{field_name} does not apply to {item.item_type} items"
                raise ValidationError(msg)

        if "title" in changes and changes["title"] is not None:
            item.title = changes["title"].strip()
        if "order_index" in changes and changes["order_index"] is not None:
            item.order_index = changes["order_index"]
        if "is_published" in changes and changes["is_published"] is not None:
            item.is_published = changes["is_published"]
        if "is_required" in changes and changes["is_required"] is not None:
            item.is_required = changes["is_required"]
        if "content" in changes:
            item.content = changes["content"]
        if "url" in changes:
            if not changes["url"]:
                raise ValidationError("url is required for EXTERNAL_LINK items")
            item.url = changes["url"]
        if "assessment_id" in changes:
            assessment_id = changes["assessment_id"]
            if assessment_id is None:
                raise ValidationError("assessment_id is required for ASSESSMENT items")
            if not await self.get_assessment(class_id, assessment_id):
                raise NotFoundError("Assessment not found in this class")
            item.assessment_id = assessment_id

        await self._save_item(item)
        logger.info(
            "module_item_updated",
            class_id=str(class_id),
            module_id=str(module_id),
            item_id=str(item_id),
            fields=sorted(changes),
        )
        return item

    async def reorder_items(
        self, class_id: UUID, module_id: UUID, raw_items: Any
    ) -> int:
        """Set new ``order_index`` values for items of a module.

        A Cassandra UPDATE is an upsert, so ids are checked against the
        module's items before writing.

        Raises:
            ValidationError: If payload is not an array of entries
            NotFoundError: If module is missing or an id is not one of its items
        """
        entries = parse_reorder_entries(raw_items)
        if not await self.get_module(class_id, module_id):
            raise NotFoundError("Module not found")

        known = {i.id for i in await self.list_module_items(class_id, module_id)}
        missing = [str(e.id) for e in entries if e.id not in known]
        if missing:
            msg = f"Items not found in this module: {', '.join(missing)}"
            raise NotFoundError(msg)

        for entry in entries:
            await self.session.aexecute(
                self._update_item_order,
                [entry.order_index, class_id, module_id, entry.id],
            )

        logger.info(
            "module_items_reordered",
            class_id=str(class_id),
            module_id=str(module_id),
            count=len(entries),
        )
        return len(entries)

    # ==========================================================================
    # Assessment Operations
    # ==========================================================================

    async def list_assessments(self, class_id: UUID) -> list[Assessment]:
        """List all assessments of a class."""
        result = await self.session.aexecute(self._get_class_assessments, [class_id])
        return [Assessment.from_row(row) for row in result]

    async def get_assessment(
        self, class_id: UUID, assessment_id: UUID
    ) -> Assessment | None:
        """Get assessment by class and ID."""
        result = await self.session.aexecute(
            self._get_assessment, [class_id, assessment_id]
        )
        row = result.one()
        return Assessment.from_row(row) if row else None

    async def find_assessment(self, assessment_id: UUID) -> Assessment | None:
        """Get assessment by ID alone (via lookup table)."""
        result = await self.session.aexecute(
            self._get_assessment_location, [assessment_id]
        )
        location = result.one()
        if not location:
            return None
        return await self.get_assessment(location.class_id, assessment_id)

    async def require_managed_assessment(
        self, assessment_id: UUID, user: "UserResponse"
    ) -> Assessment:
        """Get an assessment whose class the user may author.

        Raises:
            NotFoundError: If assessment doesn't exist
            ForbiddenError: If user does not manage the assessment's class
        """
        assessment = await self.find_assessment(assessment_id)
        if not assessment:
            raise NotFoundError("Assessment not found")
        await self.require_managed_class(assessment.class_id, user)
        return assessment

    async def _save_assessment(self, assessment: Assessment) -> None:
        await self.session.aexecute(
            self._insert_assessment,
            [
                assessment.class_id,
                assessment.id,
                assessment.title,
                assessment.description,
                assessment.type,
                assessment.max_points,
                assessment.is_published,
                assessment.due_at,
                assessment.auto_complete_enabled,
                assessment.minimum_reply_count,
                assessment.allow_peer_replies,
                assessment.created_at,
            ],
        )

    async def create_assessment(
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
    ) -> Assessment:
        """Create an assessment in a class."""
        assessment = Assessment(
            class_id=class_id,
            title=title.strip(),
            type=type,
            max_points=max_points,
            description=description,
            is_published=is_published,
            due_at=due_at,
            auto_complete_enabled=auto_complete_enabled,
            minimum_reply_count=minimum_reply_count,
            allow_peer_replies=allow_peer_replies,
        )

        # Dual write: main table + id lookup
        await self._save_assessment(assessment)
        await self.session.aexecute(
            self._insert_assessment_location, [assessment.id, assessment.class_id]
        )

        logger.info(
            "assessment_created",
            class_id=str(class_id),
            assessment_id=str(assessment.id),
            type=assessment.type,
        )
        return assessment

    async def update_assessment(
        self, class_id: UUID, assessment_id: UUID, changes: dict[str, Any]
    ) -> Assessment:
        """Apply a partial update to an assessment.

        Existing grades are not recomputed when ``max_points`` changes.

        Raises:
            NotFoundError: If assessment doesn't exist in the class
            ValidationError: If auto-grading is enabled on a non-discussion
        """
        assessment = await self.get_assessment(class_id, assessment_id)
        if not assessment:
            raise NotFoundError("Assessment not found")

        if "title" in changes and changes["title"] is not None:
            assessment.title = changes["title"].strip()
        if "description" in changes:
            assessment.description = changes["description"]
        if "max_points" in changes and changes["max_points"] is not None:
            assessment.max_points = Decimal(changes["max_points"])
        if "is_published" in changes and changes["is_published"] is not None:
            assessment.is_published = changes["is_published"]
        if "due_at" in changes:
            assessment.due_at = ensure_utc_aware(changes["due_at"])
        if "minimum_reply_count" in changes:
            assessment.minimum_reply_count = changes["minimum_reply_count"]
        if "allow_peer_replies" in changes and changes["allow_peer_replies"] is not None:
            assessment.allow_peer_replies = changes["allow_peer_replies"]
        if (
            "auto_complete_enabled" in changes
            and changes["auto_complete_enabled"] is not None
        ):
            assessment.auto_complete_enabled = changes["auto_complete_enabled"]

        if (
            assessment.auto_complete_enabled
            and assessment.type != AssessmentType.DISCUSSION.value
        ):
            raise ValidationError(
                "auto_complete_enabled requires a DISCUSSION assessment"
            )

        await self._save_assessment(assessment)
        logger.info(
            "assessment_updated",
            class_id=str(class_id),
            assessment_id=str(assessment_id),
            fields=sorted(changes),
        )
        return assessment
