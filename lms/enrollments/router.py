"""Enrollment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from lms.auth.dependencies import ProfessorUser, StudentUser
from lms.catalog.dependencies import CatalogServiceDep
from lms.catalog.schemas import ClassResponse
from lms.core.errors import LMSError, handle_lms_error

from .dependencies import EnrollmentServiceDep
from .schemas import (
    EnrollmentResponse,
    JoinClassRequest,
    JoinClassResponse,
    RosterResponse,
    StudentClassListResponse,
    StudentClassResponse,
)


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])
student_router = APIRouter(prefix="/v1/student/classes", tags=["enrollments"])
roster_router = APIRouter(prefix="/v1/professor/classes", tags=["enrollments"])


@router.post(
    "/join",
    response_model=JoinClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Join class by code",
)
async def join_class(
    data: JoinClassRequest,
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
) -> JoinClassResponse:
    """Enroll the current student using a class code."""
    try:
        enrollment, course_class = await enrollment_service.join_by_code(
            user.id, data.class_code
        )
    except LMSError as e:
        raise handle_lms_error(e) from e

    return JoinClassResponse(
        enrollment=EnrollmentResponse.from_entity(enrollment),
        class_=ClassResponse.from_entity(course_class),
    )


@student_router.get("", response_model=StudentClassListResponse, summary="My classes")
async def list_my_classes(
    enrollment_service: EnrollmentServiceDep,
    user: StudentUser,
) -> StudentClassListResponse:
    """List classes the current student is actively enrolled in."""
    pairs = await enrollment_service.list_student_classes(user.id)
    classes = [
        StudentClassResponse(
            **ClassResponse.from_entity(course_class).model_dump(),
            enrolled_at=enrollment.enrolled_at,
        )
        for enrollment, course_class in pairs
    ]
    return StudentClassListResponse(classes=classes, total=len(classes))


@roster_router.get(
    "/{class_id}/students",
    response_model=RosterResponse,
    summary="Class roster",
)
async def list_students(
    class_id: UUID,
    catalog_service: CatalogServiceDep,
    enrollment_service: EnrollmentServiceDep,
    user: ProfessorUser,
) -> RosterResponse:
    """List active enrollments of a class."""
    try:
        await catalog_service.require_managed_class(class_id, user)
    except LMSError as e:
        raise handle_lms_error(e) from e

    enrollments = await enrollment_service.list_class_enrollments(class_id)
    enrollments.sort(key=lambda e: e.enrolled_at)
    return RosterResponse(
        students=[EnrollmentResponse.from_entity(e) for e in enrollments],
        total=len(enrollments),
    )
