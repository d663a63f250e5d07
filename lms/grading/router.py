"""Grading API endpoints.

Provides routes for:
- Student grade report
- Class gradebook
- Manual grading
- Discussion auto-grading
"""

from uuid import UUID

from fastapi import APIRouter

from lms.auth.dependencies import ProfessorUser, StudentUser
from lms.catalog.dependencies import CatalogServiceDep
from lms.core.errors import LMSError, handle_lms_error

from .dependencies import GradingServiceDep
from .schemas import (
    AutoGradeResponse,
    GradebookResponse,
    ManualGradeRequest,
    StudentGradesResponse,
    SubmissionResponse,
)


student_router = APIRouter(prefix="/v1/student", tags=["grading"])
router = APIRouter(prefix="/v1/professor", tags=["grading"])


@student_router.get(
    "/grades",
    response_model=StudentGradesResponse,
    summary="My grades",
)
async def get_my_grades(
    grading_service: GradingServiceDep,
    user: StudentUser,
) -> StudentGradesResponse:
    """Grade report across the current student's active classes."""
    return await grading_service.student_report(user.id)


@router.get(
    "/classes/{class_id}/gradebook",
    response_model=GradebookResponse,
    summary="Class gradebook",
)
async def get_gradebook(
    class_id: UUID,
    catalog_service: CatalogServiceDep,
    grading_service: GradingServiceDep,
    user: ProfessorUser,
) -> GradebookResponse:
    """Grade grid for every active student of the class."""
    try:
        await catalog_service.require_managed_class(class_id, user)
    except LMSError as e:
        raise handle_lms_error(e) from e

    return await grading_service.gradebook(class_id)


@router.put(
    "/assessments/{assessment_id}/submissions/{student_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    assessment_id: UUID,
    student_id: UUID,
    data: ManualGradeRequest,
    catalog_service: CatalogServiceDep,
    grading_service: GradingServiceDep,
    user: ProfessorUser,
) -> SubmissionResponse:
    """Set a manual score for a student's submission."""
    try:
        assessment = await catalog_service.require_managed_assessment(
            assessment_id, user
        )
        submission = await grading_service.grade_submission(
            assessment=assessment,
            student_id=student_id,
            manual_score=data.manual_score,
            feedback=data.feedback,
            is_late=data.is_late,
        )
        return SubmissionResponse.from_entity(submission)
    except LMSError as e:
        raise handle_lms_error(e) from e


@router.post(
    "/assessments/{assessment_id}/discussions/grade",
    response_model=AutoGradeResponse,
    summary="Auto-grade discussion",
)
async def auto_grade_discussion(
    assessment_id: UUID,
    catalog_service: CatalogServiceDep,
    grading_service: GradingServiceDep,
    user: ProfessorUser,
) -> AutoGradeResponse:
    """Grade ungraded discussion submissions by participation."""
    try:
        assessment = await catalog_service.require_managed_assessment(
            assessment_id, user
        )
        graded_count = await grading_service.auto_grade_discussion(assessment)
    except LMSError as e:
        raise handle_lms_error(e) from e

    return AutoGradeResponse(
        message=f"Auto-graded {graded_count} submissions",
        graded_count=graded_count,
    )
