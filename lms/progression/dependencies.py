"""FastAPI dependencies for progression."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProgressionService


async def get_progression_service(request: Request) -> ProgressionService:
    """Get progression service from app state.

    Args:
        request: FastAPI request

    Returns:
        ProgressionService instance
    """
    app_state = request.app.state
    if not getattr(app_state, "progression_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progression service not available",
        )
    return app_state.progression_service


ProgressionServiceDep = Annotated[ProgressionService, Depends(get_progression_service)]
