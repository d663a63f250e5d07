"""Pydantic schemas for catalog authoring.

Request and response models for:
- Classes: creation and professor listing
- Modules: creation, update and reordering
- Module items: creation, update and reordering
- Assessments: creation and update
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from lms.catalog.models import (
    Assessment,
    AssessmentType,
    CourseClass,
    ItemType,
    Module,
    ModuleItem,
)


# ==============================================================================
# Class Schemas
# ==============================================================================


class CreateClassRequest(BaseModel):
    """Class creation request.

    The join code is derived from ``professor_code``, ``course_code``,
    ``term``, ``year`` and ``section``.
    """

    title: str = Field(..., min_length=3, max_length=200, description="Class title")
    professor_code: str = Field(
        ...,
        min_length=2,
        max_length=12,
        pattern=r"^[A-Za-z0-9]+$",
        description="Professor school id used as class code prefix",
    )
    course_code: str = Field(
        ..., min_length=2, max_length=20, pattern=r"^[A-Za-z0-9]+$"
    )
    term: Literal["Fall", "Spring", "Summer", "Winter"]
    year: int = Field(..., ge=2000, le=2100)
    section: str = Field(..., pattern=r"^\d{1,2}$", description="1-2 digit section")


class ClassResponse(BaseModel):
    """Class response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    class_code: str
    course_code: str | None = None
    term: str | None = None
    year: int | None = None
    section: str | None = None
    professor_id: UUID
    is_active: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, course_class: CourseClass) -> "ClassResponse":
        return cls.model_validate(course_class)


class ClassListResponse(BaseModel):
    """Class list response."""

    classes: list[ClassResponse]
    total: int


# ==============================================================================
# Module Schemas
# ==============================================================================


class CreateModuleRequest(BaseModel):
    """Module creation request."""

    title: str = Field(..., min_length=1, max_length=200, description="Module title")
    description: str | None = Field(None, max_length=5000)
    order_index: int | None = Field(
        None, ge=0, description="Position in class (defaults to last)"
    )
    is_published: bool = False
    unlock_at: datetime | None = None
    prerequisite_ids: list[UUID] = Field(default_factory=list)


class UpdateModuleRequest(BaseModel):
    """Module update request (partial)."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    is_published: bool | None = None
    unlock_at: datetime | None = None
    prerequisite_ids: list[UUID] | None = None


class ModuleResponse(BaseModel):
    """Module response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    class_id: UUID
    title: str
    description: str | None = None
    order_index: int
    is_published: bool
    unlock_at: datetime | None = None
    prerequisite_ids: list[UUID] = []
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, module: Module) -> "ModuleResponse":
        return cls(
            id=module.id,
            class_id=module.class_id,
            title=module.title,
            description=module.description,
            order_index=module.order_index,
            is_published=module.is_published,
            unlock_at=module.unlock_at,
            prerequisite_ids=sorted(module.prerequisite_ids, key=str),
            created_at=module.created_at,
            updated_at=module.updated_at,
        )


# ==============================================================================
# Module Item Schemas
# ==============================================================================


class CreateModuleItemRequest(BaseModel):
    """Module item creation request."""

    item_type: ItemType
    title: str = Field(..., min_length=1, max_length=200)
    order_index: int | None = Field(None, ge=0)
    is_published: bool = False
    is_required: bool = True
    url: str | None = Field(None, max_length=2000)
    content: str | None = None
    assessment_id: UUID | None = None


class UpdateModuleItemRequest(BaseModel):
    """Module item update request (partial).

    ``url``, ``content`` and ``assessment_id`` only apply to items of the
    matching type.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    order_index: int | None = Field(None, ge=0)
    is_published: bool | None = None
    is_required: bool | None = None
    url: str | None = Field(None, max_length=2000)
    content: str | None = None
    assessment_id: UUID | None = None


class ModuleItemResponse(BaseModel):
    """Module item response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    class_id: UUID
    module_id: UUID
    item_type: ItemType
    title: str
    order_index: int
    is_published: bool
    is_required: bool
    url: str | None = None
    content: str | None = None
    assessment_id: UUID | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, item: ModuleItem) -> "ModuleItemResponse":
        return cls.model_validate(item)


class ModuleWithItemsResponse(ModuleResponse):
    """Module with all of its items (authoring view, unfiltered)."""

    items: list[ModuleItemResponse] = []


class ModuleListResponse(BaseModel):
    """Authoring list of modules."""

    modules: list[ModuleWithItemsResponse]
    total: int


# ==============================================================================
# Assessment Schemas
# ==============================================================================


class CreateAssessmentRequest(BaseModel):
    """Assessment creation request."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    type: AssessmentType
    max_points: Decimal = Field(..., gt=0, description="Points awarded at full marks")
    is_published: bool = False
    due_at: datetime | None = None
    auto_complete_enabled: bool = False
    minimum_reply_count: int | None = Field(None, ge=0)
    allow_peer_replies: bool = True

    @model_validator(mode="after")
    def validate_discussion_settings(self) -> Self:
        """Auto-grading only applies to discussions."""
        if self.auto_complete_enabled and self.type != AssessmentType.DISCUSSION:
            msg = "auto_complete_enabled requires a DISCUSSION assessment"
            raise ValueError(msg)
        return self


class UpdateAssessmentRequest(BaseModel):
    """Assessment update request (partial). The type is fixed at creation."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    max_points: Decimal | None = Field(None, gt=0)
    is_published: bool | None = None
    due_at: datetime | None = None
    auto_complete_enabled: bool | None = None
    minimum_reply_count: int | None = Field(None, ge=0)
    allow_peer_replies: bool | None = None


class AssessmentResponse(BaseModel):
    """Assessment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    class_id: UUID
    title: str
    description: str | None = None
    type: AssessmentType
    max_points: Decimal
    is_published: bool
    due_at: datetime | None = None
    auto_complete_enabled: bool = False
    minimum_reply_count: int | None = None
    allow_peer_replies: bool = True
    created_at: datetime

    @classmethod
    def from_entity(cls, assessment: Assessment) -> "AssessmentResponse":
        return cls.model_validate(assessment)


class AssessmentListResponse(BaseModel):
    """Assessment list response."""

    assessments: list[AssessmentResponse]
    total: int


# ==============================================================================
# Reorder Schemas
# ==============================================================================


class ReorderEntry(BaseModel):
    """New position for one module or item."""

    id: UUID
    order_index: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    """Reorder request.

    ``items`` is validated by the service so a non-array payload yields a
    400 with a descriptive message instead of a schema error.
    """

    items: Any = None


class ReorderResponse(BaseModel):
    """Reorder result."""

    updated: int
