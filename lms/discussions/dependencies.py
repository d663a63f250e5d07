"""FastAPI dependencies for discussion boards."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import DiscussionService


async def get_discussion_service(request: Request) -> DiscussionService:
    """Get discussion service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "discussion_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Discussion service not available",
        )
    return app_state.discussion_service


DiscussionServiceDep = Annotated[DiscussionService, Depends(get_discussion_service)]
