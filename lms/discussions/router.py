"""Discussion board API endpoints.

Provides routes for:
- Students: list posts, post once, reply to posts
- Professors: list posts, reply, pin/unpin, participation statistics
"""

from uuid import UUID

from fastapi import APIRouter, status

from lms.auth.dependencies import ProfessorUser, StudentUser
from lms.catalog.dependencies import CatalogServiceDep
from lms.core.errors import LMSError, handle_lms_error
from lms.grading.dependencies import GradingServiceDep

from .dependencies import DiscussionServiceDep
from .schemas import (
    CreatePostRequest,
    CreateReplyRequest,
    DiscussionStatsResponse,
    PinResponse,
    PostListResponse,
    PostResponse,
    ReplyResponse,
)


student_router = APIRouter(prefix="/v1/student/assessments", tags=["discussions"])
router = APIRouter(prefix="/v1/professor/assessments", tags=["discussions"])


# ==============================================================================
# Student Endpoints
# ==============================================================================


@student_router.get(
    "/{assessment_id}/discussions",
    response_model=PostListResponse,
    summary="List discussion posts",
)
async def list_posts(
    assessment_id: UUID,
    discussion_service: DiscussionServiceDep,
    grading_service: GradingServiceDep,
    user: StudentUser,
) -> PostListResponse:
    """Posts with replies, pinned first, plus the caller's reply count."""
    try:
        await discussion_service.require_student_discussion(user.id, assessment_id)
    except LMSError as e:
        raise handle_lms_error(e) from e

    threads = await discussion_service.list_threads(assessment_id)
    submission = await grading_service.get_submission(assessment_id, user.id)
    return PostListResponse(
        posts=[PostResponse.from_thread(t) for t in threads],
        reply_count=submission.discussion_reply_count if submission else 0,
    )


@student_router.post(
    "/{assessment_id}/discussions",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create discussion post",
)
async def create_post(
    assessment_id: UUID,
    data: CreatePostRequest,
    discussion_service: DiscussionServiceDep,
    user: StudentUser,
) -> PostResponse:
    """Post to a discussion; one post per student."""
    try:
        assessment = await discussion_service.require_student_discussion(
            user.id, assessment_id
        )
        post, _ = await discussion_service.create_post(assessment, user.id, data.content)
        return PostResponse.from_entity(post)
    except LMSError as e:
        raise handle_lms_error(e) from e


@student_router.post(
    "/{assessment_id}/discussions/{post_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to post",
)
async def create_reply(
    assessment_id: UUID,
    post_id: UUID,
    data: CreateReplyRequest,
    discussion_service: DiscussionServiceDep,
    user: StudentUser,
) -> ReplyResponse:
    """Reply to a classmate's post when peer replies are allowed."""
    try:
        assessment = await discussion_service.require_student_discussion(
            user.id, assessment_id
        )
        reply = await discussion_service.create_student_reply(
            assessment, post_id, user.id, data.content
        )
        return ReplyResponse.from_entity(reply)
    except LMSError as e:
        raise handle_lms_error(e) from e


# ==============================================================================
# Professor Endpoints
# ==============================================================================


@router.get(
    "/{assessment_id}/discussions",
    response_model=PostListResponse,
    summary="List discussion posts (professor)",
)
async def list_posts_for_professor(
    assessment_id: UUID,
    catalog_service: CatalogServiceDep,
    discussion_service: DiscussionServiceDep,
    user: ProfessorUser,
) -> PostListResponse:
    try:
        await catalog_service.require_managed_assessment(assessment_id, user)
    except LMSError as e:
        raise handle_lms_error(e) from e

    threads = await discussion_service.list_threads(assessment_id)
    return PostListResponse(posts=[PostResponse.from_thread(t) for t in threads])


@router.post(
    "/{assessment_id}/discussions/{post_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to post (professor)",
)
async def create_professor_reply(
    assessment_id: UUID,
    post_id: UUID,
    data: CreateReplyRequest,
    catalog_service: CatalogServiceDep,
    discussion_service: DiscussionServiceDep,
    user: ProfessorUser,
) -> ReplyResponse:
    try:
        await catalog_service.require_managed_assessment(assessment_id, user)
        reply = await discussion_service.create_professor_reply(
            assessment_id, post_id, user.id, data.content
        )
        return ReplyResponse.from_entity(reply)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.post(
    "/{assessment_id}/discussions/{post_id}/pin",
    response_model=PinResponse,
    summary="Toggle post pin",
)
async def toggle_pin(
    assessment_id: UUID,
    post_id: UUID,
    catalog_service: CatalogServiceDep,
    discussion_service: DiscussionServiceDep,
    user: ProfessorUser,
) -> PinResponse:
    """Pin or unpin a post."""
    try:
        await catalog_service.require_managed_assessment(assessment_id, user)
        post = await discussion_service.toggle_pin(assessment_id, post_id)
    except LMSError as e:
        raise handle_lms_error(e) from e

    return PinResponse(
        message="Post pinned" if post.is_pinned else "Post unpinned",
        is_pinned=post.is_pinned,
    )


@router.get(
    "/{assessment_id}/discussions/stats",
    response_model=DiscussionStatsResponse,
    summary="Discussion statistics",
)
async def get_stats(
    assessment_id: UUID,
    catalog_service: CatalogServiceDep,
    discussion_service: DiscussionServiceDep,
    user: ProfessorUser,
) -> DiscussionStatsResponse:
    """Participation and grading statistics for a discussion."""
    try:
        assessment = await catalog_service.require_managed_assessment(
            assessment_id, user
        )
    except LMSError as e:
        raise handle_lms_error(e) from e

    stats = await discussion_service.stats(assessment)
    return DiscussionStatsResponse.from_stats(stats)
