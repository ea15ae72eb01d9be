"""
Domain Exceptions
Error taxonomy raised by the service layer and mapped to HTTP responses in app.py
"""

from typing import Optional


class MediTrackError(Exception):
    """Base class for errors that carry their own HTTP status"""
    status_code: int = 500
    error: str = "server_error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error:
            self.error = error

    def to_dict(self) -> dict:
        return {"message": self.message, "error": self.error}


class ValidationError(MediTrackError):
    """Missing or malformed input"""
    status_code = 400
    error = "validation_error"


class InvalidReferenceError(MediTrackError):
    """A referenced record exists but cannot be used, e.g. a non-provider prescriber"""
    status_code = 400
    error = "invalid_reference"


class DuplicateEmailError(MediTrackError):
    status_code = 400
    error = "duplicate_email"


class ConflictError(MediTrackError):
    status_code = 400
    error = "conflict"


class AlreadyAssignedError(ConflictError):
    """Patient already belongs to a different provider"""
    error = "already_assigned"


class NotAssignedError(ConflictError):
    error = "not_assigned"


class UnauthenticatedError(MediTrackError):
    """Missing, invalid or expired credentials"""
    status_code = 401
    error = "unauthenticated"


class ForbiddenError(MediTrackError):
    status_code = 403
    error = "forbidden"


class NotFoundError(MediTrackError):
    """Absent record or malformed id"""
    status_code = 404
    error = "not_found"


class ServiceUnavailableError(MediTrackError):
    status_code = 503
    error = "service_unavailable"


__all__ = [
    "MediTrackError",
    "ValidationError",
    "InvalidReferenceError",
    "DuplicateEmailError",
    "ConflictError",
    "AlreadyAssignedError",
    "NotAssignedError",
    "UnauthenticatedError",
    "ForbiddenError",
    "NotFoundError",
    "ServiceUnavailableError",
]
