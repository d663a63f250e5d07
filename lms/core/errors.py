"""Domain error taxonomy shared by every feature package.

Services raise these; routers convert them with ``handle_lms_error``.
Anything else that escapes a route is logged and answered with a generic
500 by the global handler in ``lms.main``.
"""

from fastapi import HTTPException, status


class LMSError(Exception):
    """Base domain error."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "lms_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(LMSError):
    """Referenced record does not exist or is not visible to the caller."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Not found", code: str = "not_found"):
        super().__init__(message, code)


class ForbiddenError(LMSError):
    """Caller is authenticated but not allowed to act on the record."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden", code: str = "forbidden"):
        super().__init__(message, code)


class NotEnrolledError(ForbiddenError):
    """Student has no active enrollment in the class."""

    def __init__(self, message: str = "Not enrolled in this class"):
        super().__init__(message, "not_enrolled")


class ConflictError(LMSError):
    """Record already exists."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Already exists", code: str = "conflict"):
        super().__init__(message, code)


class ValidationError(LMSError):
    """Request is well-formed JSON but semantically invalid."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid request", code: str = "validation_error"):
        super().__init__(message, code)


def handle_lms_error(error: LMSError) -> HTTPException:
    """Convert a domain error to an HTTP exception."""
    return HTTPException(status_code=error.status_code, detail=error.message)
