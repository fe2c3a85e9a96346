"""
Typed application errors.

Every failure a service reports to a caller is a ``JournalError`` carrying
one of the ``ErrorCode`` values. The web layer turns these into JSON bodies
``{"code": ..., "message": ...}`` with a matching HTTP status; the draft
editing client turns them back into exceptions.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """All typed error codes used across the application."""
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    INVITE_TOKEN_INVALID = "INVITE_TOKEN_INVALID"
    INVITE_TOKEN_EXPIRED = "INVITE_TOKEN_EXPIRED"
    INVITE_TOKEN_USED = "INVITE_TOKEN_USED"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    ENVIRONMENT_MISCONFIGURED = "ENVIRONMENT_MISCONFIGURED"


HTTP_STATUS = {
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.INVALID_TRANSITION: 422,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.VERSION_CONFLICT: 409,
    ErrorCode.INVITE_TOKEN_INVALID: 400,
    ErrorCode.INVITE_TOKEN_EXPIRED: 410,
    ErrorCode.INVITE_TOKEN_USED: 410,
    ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
    ErrorCode.ENVIRONMENT_MISCONFIGURED: 503,
}


class JournalError(Exception):
    """An error with a machine-readable code."""

    def __init__(self, code: ErrorCode, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = ErrorCode(code)
        self.message = message
        self.status_code = status_code or HTTP_STATUS[self.code]

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message}

    def __repr__(self) -> str:
        return f"JournalError({self.code.value}, {self.message!r})"


def unauthorized_error(message: str = "Authentication required") -> JournalError:
    return JournalError(ErrorCode.UNAUTHORIZED, message)


def unauthenticated_error() -> JournalError:
    """No identity at all, as opposed to an identity lacking permission."""
    return JournalError(ErrorCode.UNAUTHORIZED, "Not authenticated", status_code=401)


def invalid_transition_error(current: str, target: str) -> JournalError:
    return JournalError(
        ErrorCode.INVALID_TRANSITION,
        f"Cannot transition from {current} to {target}",
    )


def not_found_error(resource: str, record_id: Optional[str] = None) -> JournalError:
    message = f"{resource} not found: {record_id}" if record_id else f"{resource} not found"
    return JournalError(ErrorCode.NOT_FOUND, message)


def validation_error(message: str) -> JournalError:
    return JournalError(ErrorCode.VALIDATION_ERROR, message)


def version_conflict_error() -> JournalError:
    return JournalError(
        ErrorCode.VERSION_CONFLICT,
        "Document has been modified by another request. Please refresh and try again.",
    )


def invite_token_invalid_error() -> JournalError:
    return JournalError(ErrorCode.INVITE_TOKEN_INVALID, "The invitation token is invalid")


def invite_token_expired_error() -> JournalError:
    return JournalError(ErrorCode.INVITE_TOKEN_EXPIRED, "The invitation token has expired")


def invite_token_used_error() -> JournalError:
    return JournalError(ErrorCode.INVITE_TOKEN_USED, "The invitation token has already been used")


def external_service_error(service: str, message: Optional[str] = None) -> JournalError:
    text = (
        f"External service error ({service}): {message}"
        if message
        else f"External service error: {service}"
    )
    return JournalError(ErrorCode.EXTERNAL_SERVICE_ERROR, text)


def environment_misconfigured_error(message: str) -> JournalError:
    return JournalError(ErrorCode.ENVIRONMENT_MISCONFIGURED, message)
