"""FastAPI dependencies for grading."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import GradingService


async def get_grading_service(request: Request) -> GradingService:
    """Get grading service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "grading_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Grading service not available",
        )
    return app_state.grading_service


GradingServiceDep = Annotated[GradingService, Depends(get_grading_service)]
