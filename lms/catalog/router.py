"""Catalog authoring API endpoints.

Provides professor/admin routes for:
- Class creation and listing
- Module creation, update, listing and reordering
- Module item creation, update and reordering
- Assessment creation, update and listing
"""

from uuid import UUID

from fastapi import APIRouter, status

from lms.auth.dependencies import ProfessorUser
from lms.core.errors import LMSError, handle_lms_error

from .dependencies import CatalogServiceDep
from .schemas import (
    AssessmentListResponse,
    AssessmentResponse,
    ClassListResponse,
    ClassResponse,
    CreateAssessmentRequest,
    CreateClassRequest,
    CreateModuleItemRequest,
    CreateModuleRequest,
    ModuleItemResponse,
    ModuleListResponse,
    ModuleResponse,
    ModuleWithItemsResponse,
    ReorderRequest,
    ReorderResponse,
    UpdateAssessmentRequest,
    UpdateModuleItemRequest,
    UpdateModuleRequest,
)


router = APIRouter(prefix="/v1/professor/classes", tags=["catalog"])


# ==============================================================================
# Class Endpoints
# ==============================================================================


@router.get("", response_model=ClassListResponse, summary="List my classes")
async def list_my_classes(
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ClassListResponse:
    """List classes taught by the current professor, newest first."""
    classes = await catalog_service.list_professor_classes(user.id)
    return ClassListResponse(
        classes=[ClassResponse.from_entity(c) for c in classes],
        total=len(classes),
    )


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
)
async def create_class(
    data: CreateClassRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ClassResponse:
    """Create a class with a generated join code."""
    try:
        course_class = await catalog_service.create_class(
            professor_id=user.id,
            title=data.title,
            professor_code=data.professor_code,
            course_code=data.course_code,
            term=data.term,
            year=data.year,
            section=data.section,
        )
        return ClassResponse.from_entity(course_class)
    except LMSError as e:
        raise handle_lms_error(e) from e


# ==============================================================================
# Module Endpoints
# ==============================================================================


@router.get(
    "/{class_id}/modules",
    response_model=ModuleListResponse,
    summary="List modules with items",
)
async def list_modules(
    class_id: UUID,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ModuleListResponse:
    """List every module and item of the class, published or not."""
    try:
        await catalog_service.require_managed_class(class_id, user)
    except LMSError as e:
        raise handle_lms_error(e) from e

    modules = await catalog_service.list_modules(class_id)
    items = await catalog_service.list_class_items(class_id)
    items.sort(key=lambda i: i.order_index)

    response = []
    for module in modules:
        base = ModuleResponse.from_entity(module)
        response.append(
            ModuleWithItemsResponse(
                **base.model_dump(),
                items=[
                    ModuleItemResponse.from_entity(i)
                    for i in items
                    if i.module_id == module.id
                ],
            )
        )
    return ModuleListResponse(modules=response, total=len(response))


@router.post(
    "/{class_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create module",
)
async def create_module(
    class_id: UUID,
    data: CreateModuleRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ModuleResponse:
    """Create a module in the class."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        module = await catalog_service.create_module(
            class_id=class_id,
            title=data.title,
            description=data.description,
            order_index=data.order_index,
            is_published=data.is_published,
            unlock_at=data.unlock_at,
            prerequisite_ids=data.prerequisite_ids,
        )
        return ModuleResponse.from_entity(module)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.post(
    "/{class_id}/modules/reorder",
    response_model=ReorderResponse,
    summary="Reorder modules",
)
async def reorder_modules(
    class_id: UUID,
    data: ReorderRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ReorderResponse:
    """Set the order of modules in the class."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        updated = await catalog_service.reorder_modules(class_id, data.items)
        return ReorderResponse(updated=updated)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.patch(
    "/{class_id}/modules/{module_id}",
    response_model=ModuleResponse,
    summary="Update module",
)
async def update_module(
    class_id: UUID,
    module_id: UUID,
    data: UpdateModuleRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ModuleResponse:
    """Update module fields, publication, unlock time or prerequisites."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        module = await catalog_service.update_module(
            class_id, module_id, data.model_dump(exclude_unset=True)
        )
        return ModuleResponse.from_entity(module)
    except LMSError as e:
        raise handle_lms_error(e) from e


# ==============================================================================
# Module Item Endpoints
# ==============================================================================


@router.post(
    "/{class_id}/modules/{module_id}/items",
    response_model=ModuleItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create module item",
)
async def create_item(
    class_id: UUID,
    module_id: UUID,
    data: CreateModuleItemRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ModuleItemResponse:
    """Add an assessment, external link or page to a module."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        item = await catalog_service.create_item(
            class_id=class_id,
            module_id=module_id,
            item_type=data.item_type,
            title=data.title,
            order_index=data.order_index,
            is_published=data.is_published,
            is_required=data.is_required,
            url=data.url,
            content=data.content,
            assessment_id=data.assessment_id,
        )
        return ModuleItemResponse.from_entity(item)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.patch(
    "/{class_id}/modules/{module_id}/items/{item_id}",
    response_model=ModuleItemResponse,
    summary="Update module item",
)
async def update_item(
    class_id: UUID,
    module_id: UUID,
    item_id: UUID,
    data: UpdateModuleItemRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ModuleItemResponse:
    """Update an item's title, position, publication or required flag."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        item = await catalog_service.update_item(
            class_id, module_id, item_id, data.model_dump(exclude_unset=True)
        )
        return ModuleItemResponse.from_entity(item)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.post(
    "/{class_id}/modules/{module_id}/items/reorder",
    response_model=ReorderResponse,
    summary="Reorder module items",
)
async def reorder_items(
    class_id: UUID,
    module_id: UUID,
    data: ReorderRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> ReorderResponse:
    """Set the order of items in a module."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        updated = await catalog_service.reorder_items(class_id, module_id, data.items)
        return ReorderResponse(updated=updated)
    except LMSError as e:
        raise handle_lms_error(e) from e


# ==============================================================================
# Assessment Endpoints
# ==============================================================================


@router.get(
    "/{class_id}/assessments",
    response_model=AssessmentListResponse,
    summary="List assessments",
)
async def list_assessments(
    class_id: UUID,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> AssessmentListResponse:
    try:
        await catalog_service.require_managed_class(class_id, user)
    except LMSError as e:
        raise handle_lms_error(e) from e

    assessments = await catalog_service.list_assessments(class_id)
    assessments.sort(key=lambda a: a.created_at)
    return AssessmentListResponse(
        assessments=[AssessmentResponse.from_entity(a) for a in assessments],
        total=len(assessments),
    )


@router.post(
    "/{class_id}/assessments",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assessment",
)
async def create_assessment(
    class_id: UUID,
    data: CreateAssessmentRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> AssessmentResponse:
    """Create an assessment in the class."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        assessment = await catalog_service.create_assessment(
            class_id=class_id,
            title=data.title,
            type=data.type.value,
            max_points=data.max_points,
            description=data.description,
            is_published=data.is_published,
            due_at=data.due_at,
            auto_complete_enabled=data.auto_complete_enabled,
            minimum_reply_count=data.minimum_reply_count,
            allow_peer_replies=data.allow_peer_replies,
        )
        return AssessmentResponse.from_entity(assessment)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.patch(
    "/{class_id}/assessments/{assessment_id}",
    response_model=AssessmentResponse,
    summary="Update assessment",
)
async def update_assessment(
    class_id: UUID,
    assessment_id: UUID,
    data: UpdateAssessmentRequest,
    catalog_service: CatalogServiceDep,
    user: ProfessorUser,
) -> AssessmentResponse:
    """Update assessment fields, publication or discussion settings."""
    try:
        await catalog_service.require_managed_class(class_id, user)
        assessment = await catalog_service.update_assessment(
            class_id, assessment_id, data.model_dump(exclude_unset=True)
        )
        return AssessmentResponse.from_entity(assessment)
    except LMSError as e:
        raise handle_lms_error(e) from e
