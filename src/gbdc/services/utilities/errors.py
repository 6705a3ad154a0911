# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

__all__ = (
    "ActionError",
    "AuthenticationError",
    "AuthorizationError",
    "ErrorKind",
    "ExternalServiceError",
    "NotFoundError",
    "RateLimitError",
    "ValidationError",
)


class ErrorKind(str, Enum):
    """Closed set of error kinds a request handler can report.

    Values:
        VALIDATION: Caller-supplied input failed a constraint
        AUTHENTICATION: Missing or invalid credentials
        AUTHORIZATION: Authenticated but insufficient privilege
        NOT_FOUND: Referenced resource does not exist
        RATE_LIMIT: Quota exceeded
        EXTERNAL_SERVICE: A downstream collaborator failed
        INTERNAL: Unclassified or unexpected failure
    """

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not-found"
    RATE_LIMIT = "rate-limit"
    EXTERNAL_SERVICE = "external-service"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def code(self) -> str:
        return _CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.EXTERNAL_SERVICE: 503,
    ErrorKind.INTERNAL: 500,
}

_CODES = {
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.AUTHENTICATION: "AUTH_ERROR",
    ErrorKind.AUTHORIZATION: "AUTHZ_ERROR",
    ErrorKind.NOT_FOUND: "NOT_FOUND",
    ErrorKind.RATE_LIMIT: "RATE_LIMIT",
    ErrorKind.EXTERNAL_SERVICE: "EXTERNAL_SERVICE",
    ErrorKind.INTERNAL: "INTERNAL_ERROR",
}


class ActionError(Exception):
    """Base for errors a request handler raises on purpose.

    Subclasses set ``kind`` and ``default_message``; the HTTP status and
    machine-readable code follow from the kind unless overridden.
    """

    default_message: ClassVar[str] = "Application error"
    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ):
        """Initialize with message and optional structured details.

        Args:
            message: Error message (uses default_message if None)
            details: Structured payload returned to the caller
            status_code: Override for the kind's default HTTP status
            code: Override for the kind's default error code
        """
        self.message = message or self.default_message
        self.details = details
        self.status_code = status_code or self.kind.status_code
        self.code = code or self.kind.code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "code": self.code,
        }
        if self.details is not None:
            data["details"] = self.details
        return data


class ValidationError(ActionError):
    default_message = "Invalid input"
    kind = ErrorKind.VALIDATION


class AuthenticationError(ActionError):
    default_message = "Authentication required"
    kind = ErrorKind.AUTHENTICATION


class AuthorizationError(ActionError):
    default_message = "Insufficient permissions"
    kind = ErrorKind.AUTHORIZATION


class NotFoundError(ActionError):
    default_message = "Resource not found"
    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str = "Resource", *, details: dict[str, Any] | None = None):
        super().__init__(f"{resource} not found", details=details)
        self.resource = resource


class RateLimitError(ActionError):
    """Raised when a client exceeds its request quota.

    ``reset_at`` is the POSIX timestamp at which the client's window expires.
    """

    default_message = "Rate limit exceeded"
    kind = ErrorKind.RATE_LIMIT

    def __init__(self, reset_at: float | None = None):
        message = None
        details = None
        if reset_at is not None:
            iso = datetime.fromtimestamp(reset_at, tz=timezone.utc).isoformat()
            message = f"Rate limit exceeded. Try again after {iso}"
            details = {"reset_at": iso}
        super().__init__(message, details=details)
        self.reset_at = reset_at


class ExternalServiceError(ActionError):
    """A downstream collaborator (email API, storage) failed.

    The original exception is kept on ``cause`` and chained by callers with
    ``raise ... from``.
    """

    default_message = "External service error"
    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(
        self,
        service: str,
        cause: BaseException | None = None,
        *,
        details: dict[str, Any] | None = None,
    ):
        if cause is not None:
            details = {**(details or {}), "cause": f"{type(cause).__name__}: {cause}"}
        super().__init__(f"External service error: {service}", details=details)
        self.service = service
        self.cause = cause
