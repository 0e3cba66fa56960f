"""
playhub.errors — Typed failure taxonomy
========================================

Every failure the services raise carries a stable ``kind`` and a
human-readable ``message``.  The API layer maps ``status_code`` straight
onto the HTTP response; nothing here knows about FastAPI.
"""

from __future__ import annotations


class PlayhubError(Exception):
    """Base class for all domain failures."""

    kind: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


class ValidationError(PlayhubError):
    kind = "validation_error"
    status_code = 400


class NotFoundError(PlayhubError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(PlayhubError):
    kind = "forbidden"
    status_code = 403


class ConflictError(PlayhubError):
    kind = "conflict"
    status_code = 409


class PreconditionFailedError(PlayhubError):
    kind = "precondition_failed"
    status_code = 412


class TooManyRequestsError(PlayhubError):
    kind = "too_many_requests"
    status_code = 429

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(PlayhubError):
    kind = "internal_error"
    status_code = 500
