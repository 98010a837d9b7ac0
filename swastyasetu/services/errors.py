"""Errors raised by the scheduling services.

Each error carries the HTTP status code the routes translate it to.
"""

from fastapi import HTTPException, status


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """A required booking field is missing or malformed."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedTransition(ServiceError):
    """The actor's role does not permit the requested change."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidState(ServiceError):
    """The current status does not allow the requested transition."""
    status_code = status.HTTP_409_CONFLICT


class SlotUnavailable(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class StoreConflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def to_http_exception(exc: ServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
