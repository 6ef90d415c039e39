"""Error taxonomy shared by services and routes.

Services raise these; the handlers registered in ``main`` turn them into
``{"error": ...}`` JSON responses with the matching status code.
"""
import enum
from typing import Optional


class GuestListError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.message, **self.extra}


class ValidationFailed(GuestListError):
    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[list] = None):
        if details:
            super().__init__(message, details=details)
        else:
            super().__init__(message)


class NotAuthenticated(GuestListError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(GuestListError):
    status_code = 404


class Conflict(GuestListError):
    status_code = 409


class RejectionReason(str, enum.Enum):
    LIST_CLOSED = "list_closed"
    INVALID_QUANTITY = "invalid_quantity"
    DUPLICATE_EMAIL = "duplicate_email"
    EXCEEDS_MAX_PER_SIGNUP = "exceeds_max_per_signup"
    LIST_FULL = "list_full"
    EXCEEDS_REMAINING = "exceeds_remaining_capacity"


class SignupRejected(GuestListError):
    """A public signup refused by the capacity rules. Nothing was written."""

    def __init__(self, reason: RejectionReason, message: str, remaining: Optional[int] = None):
        status_code = 409 if reason is RejectionReason.DUPLICATE_EMAIL else 400
        extra = {"reason": reason.value}
        if remaining is not None:
            extra["remaining"] = remaining
        super().__init__(message, status_code=status_code, **extra)
        self.reason = reason
        self.remaining = remaining
