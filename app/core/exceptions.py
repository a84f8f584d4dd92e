"""
Typed request failures.

Each subclass fixes the HTTP status for one failure category so services
can raise by meaning and FastAPI renders them as ``{"detail": ...}``.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"

    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class BadRequestError(AppError):
    pass


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class PastEventError(AppError):
    default_detail = "Cannot RSVP to past events"


class CapacityExceededError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Event is at full capacity"


class DuplicateError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Username or email already exists"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting concurrent update, please retry"
