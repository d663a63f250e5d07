"""Student progression API endpoints.

Provides routes for:
- Module view of a class (lock state, progress, completion)
- Module item completion
"""

from uuid import UUID

from fastapi import APIRouter

from lms.auth.dependencies import StudentUser
from lms.core.errors import LMSError, handle_lms_error

from .dependencies import ProgressionServiceDep
from .schemas import (
    ClassModulesResponse,
    CompleteItemResponse,
    CompletionResponse,
    ModuleViewResponse,
)


router = APIRouter(prefix="/v1/student", tags=["progression"])


@router.get(
    "/classes/{class_id}/modules",
    response_model=ClassModulesResponse,
    summary="Get class modules",
)
async def get_class_modules(
    class_id: UUID,
    progression_service: ProgressionServiceDep,
    user: StudentUser,
) -> ClassModulesResponse:
    """Published modules of the class with lock state and progress.

    Requires an active enrollment.
    """
    try:
        views = await progression_service.get_class_modules(user.id, class_id)
    except LMSError as e:
        raise handle_lms_error(e) from e

    return ClassModulesResponse(
        modules=[ModuleViewResponse.from_view(v) for v in views]
    )


@router.post(
    "/module-items/{item_id}/complete",
    response_model=CompleteItemResponse,
    summary="Complete module item",
)
async def complete_item(
    item_id: UUID,
    progression_service: ProgressionServiceDep,
    user: StudentUser,
) -> CompleteItemResponse:
    """Mark a module item complete.

    Calling it again for the same item returns the stored completion.
    ``module_completed`` is true when every required item of the module
    is now complete.
    """
    try:
        result = await progression_service.complete_item(user.id, item_id)
    except LMSError as e:
        raise handle_lms_error(e) from e

    return CompleteItemResponse(
        completion=CompletionResponse.from_entity(result.completion),
        module_completed=result.module_completed,
    )
