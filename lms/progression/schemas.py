"""Pydantic schemas for the student module view and item completion."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from lms.catalog.models import AssessmentType, ItemType

from .engine import ItemView, ModuleView
from .models import ModuleItemCompletion


class ItemAssessmentSummary(BaseModel):
    """Assessment linked from a module item."""

    id: UUID
    title: str
    type: AssessmentType
    max_points: Decimal
    due_at: datetime | None = None


class ModuleItemViewResponse(BaseModel):
    """Visible module item with the student's completion."""

    id: UUID
    title: str
    item_type: ItemType
    order_index: int
    is_required: bool
    url: str | None = None
    content: str | None = None
    assessment: ItemAssessmentSummary | None = None
    is_completed: bool

    @classmethod
    def from_view(cls, view: ItemView) -> "ModuleItemViewResponse":
        assessment = None
        if view.assessment is not None:
            assessment = ItemAssessmentSummary(
                id=view.assessment.id,
                title=view.assessment.title,
                type=view.assessment.type,
                max_points=view.assessment.max_points,
                due_at=view.assessment.due_at,
            )
        return cls(
            id=view.item.id,
            title=view.item.title,
            item_type=view.item.item_type,
            order_index=view.item.order_index,
            is_required=view.item.is_required,
            url=view.item.url,
            content=view.item.content,
            assessment=assessment,
            is_completed=view.is_completed,
        )


class ModuleViewResponse(BaseModel):
    """Module with lock state and progress for one student."""

    id: UUID
    title: str
    description: str | None = None
    order_index: int
    unlock_at: datetime | None = None
    is_locked: bool
    is_completed: bool
    progress: float
    completed_items: int
    total_items: int
    items: list[ModuleItemViewResponse]

    @classmethod
    def from_view(cls, view: ModuleView) -> "ModuleViewResponse":
        return cls(
            id=view.module.id,
            title=view.module.title,
            description=view.module.description,
            order_index=view.module.order_index,
            unlock_at=view.module.unlock_at,
            is_locked=view.lock.is_locked,
            is_completed=view.is_completed,
            progress=view.progress,
            completed_items=view.completed_items,
            total_items=view.total_items,
            items=[ModuleItemViewResponse.from_view(i) for i in view.items],
        )


class ClassModulesResponse(BaseModel):
    """Student module view of a class."""

    modules: list[ModuleViewResponse]


class CompletionResponse(BaseModel):
    """Stored module item completion."""

    id: UUID
    module_item_id: UUID
    module_id: UUID
    class_id: UUID
    student_id: UUID
    completed_at: datetime

    @classmethod
    def from_entity(cls, completion: ModuleItemCompletion) -> "CompletionResponse":
        return cls(
            id=completion.id,
            module_item_id=completion.module_item_id,
            module_id=completion.module_id,
            class_id=completion.class_id,
            student_id=completion.student_id,
            completed_at=completion.completed_at,
        )


class CompleteItemResponse(BaseModel):
    """Result of completing a module item."""

    completion: CompletionResponse
    module_completed: bool
