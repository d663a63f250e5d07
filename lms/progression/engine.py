"""Module progression rules.

Pure functions over catalog entities and completion ids. They decide
which items a student sees, whether a module is locked, how far along it
is and whether its required items are all complete. No I/O; callers
supply the current time.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

import structlog

from lms.catalog.models import Assessment, Module, ModuleItem


logger = structlog.get_logger(__name__)


@dataclass
class LockState:
    is_time_locked: bool
    is_prerequisite_locked: bool

    @property
    def is_locked(self) -> bool:
        return self.is_time_locked or self.is_prerequisite_locked


@dataclass
class ItemView:
    item: ModuleItem
    assessment: Assessment | None
    is_completed: bool


@dataclass
class ModuleView:
    module: Module
    lock: LockState
    is_completed: bool
    items: list[ItemView] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def completed_items(self) -> int:
        return sum(1 for view in self.items if view.is_completed)

    @property
    def progress(self) -> float:
        """Percentage of visible items completed (0 when there are none)."""
        if not self.items:
            return 0
        return self.completed_items / self.total_items * 100


def is_item_visible(item: ModuleItem, assessments: Mapping[UUID, Assessment]) -> bool:
    """Whether a student sees the item and it counts toward progress.

    Unpublished items are hidden. Assessment items are hidden too when
    their assessment is missing or unpublished.
    """
    if not item.is_published:
        return False
    if not item.is_assessment:
        return True

    assessment = assessments.get(item.assessment_id) if item.assessment_id else None
    if assessment is None:
        logger.warning(
            "module_dangling_assessment",
            item_id=str(item.id),
            module_id=str(item.module_id),
            assessment_id=str(item.assessment_id) if item.assessment_id else None,
        )
        return False
    return assessment.is_published


def compute_lock_state(
    module: Module,
    class_module_ids: set[UUID],
    completed_module_ids: set[UUID],
    now: datetime,
) -> LockState:
    """Time and prerequisite lock for one module.

    Prerequisites outside ``class_module_ids`` are ignored. Only direct
    prerequisites are consulted.
    """
    is_time_locked = module.unlock_at is not None and module.unlock_at > now
    is_prerequisite_locked = any(
        prerequisite_id in class_module_ids
        and prerequisite_id not in completed_module_ids
        for prerequisite_id in module.prerequisite_ids
    )
    return LockState(
        is_time_locked=is_time_locked,
        is_prerequisite_locked=is_prerequisite_locked,
    )


def build_module_views(
    modules: Iterable[Module],
    items: Iterable[ModuleItem],
    assessments: Mapping[UUID, Assessment],
    completed_item_ids: set[UUID],
    completed_module_ids: set[UUID],
    now: datetime,
) -> list[ModuleView]:
    """Student view of a class: published modules with their visible items.

    Modules and items come back ordered by ``order_index``.
    ``is_completed`` on a module reflects a stored ModuleCompletion, it is
    not derived from item progress.
    """
    published = sorted(
        (m for m in modules if m.is_published), key=lambda m: m.order_index
    )
    published_ids = {m.id for m in published}

    items_by_module: dict[UUID, list[ModuleItem]] = {}
    for item in items:
        items_by_module.setdefault(item.module_id, []).append(item)

    views = []
    for module in published:
        module_items = sorted(
            items_by_module.get(module.id, []), key=lambda i: i.order_index
        )
        visible = [
            ItemView(
                item=item,
                assessment=(
                    assessments.get(item.assessment_id) if item.is_assessment else None
                ),
                is_completed=item.id in completed_item_ids,
            )
            for item in module_items
            if is_item_visible(item, assessments)
        ]
        views.append(
            ModuleView(
                module=module,
                lock=compute_lock_state(
                    module, published_ids, completed_module_ids, now
                ),
                is_completed=module.id in completed_module_ids,
                items=visible,
            )
        )
    return views


def required_items_complete(
    module_items: Iterable[ModuleItem],
    completed_item_ids: set[UUID],
    assessments: Mapping[UUID, Assessment] | None = None,
) -> bool:
    """Whether every required, published item of a module is completed.

    When ``assessments`` is given, assessment items that a student would
    not see (dangling or unpublished assessment) are left out as well.
    A module with no required items counts as complete.
    """
    for item in module_items:
        if not (item.is_required and item.is_published):
            continue
        if assessments is not None and not is_item_visible(item, assessments):
            continue
        if item.id not in completed_item_ids:
            return False
    return True
