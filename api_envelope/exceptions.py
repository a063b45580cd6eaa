"""Application exceptions rendered as error envelopes.

Route handlers and services raise these; the handlers registered in
``api_envelope.handlers`` turn them into responses. Nothing in the
formatter catches or recovers them.
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping, Sequence

from api_envelope.models.envelope import RateLimitState
from api_envelope.models.errors import (
    INTERNAL_ERROR_CODE,
    ErrorCode,
    code_value,
    status_code_for,
)

Details = Mapping[str, str | Sequence[str]]


class ApiError(Exception):
    """Base class for errors that carry a machine-readable code."""

    default_code: ErrorCode | str = INTERNAL_ERROR_CODE

    def __init__(
        self,
        message: str,
        code: ErrorCode | str | None = None,
        details: Details | None = None,
    ) -> None:
        self.code = code if code is not None else self.default_code
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status_code_for(self.code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={code_value(self.code)!r}, message={self.message!r})"


class AuthenticationError(ApiError):
    """Missing, malformed or expired credentials (401)."""

    default_code = ErrorCode.AUTH_TOKEN_INVALID


class PermissionDeniedError(ApiError):
    """Authenticated caller lacks the required scope (403)."""

    default_code = ErrorCode.AUTH_PERMISSION_DENIED

    def __init__(self, message: str = "Permission denied", details: Details | None = None) -> None:
        super().__init__(message, details=details)


class ValidationFailedError(ApiError):
    """Input rejected by application-level validation (400)."""

    default_code = ErrorCode.VALIDATION_INVALID_FORMAT


class ResourceNotFoundError(ApiError):
    """Requested resource does not exist (404)."""

    default_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(
        self,
        message: str = "Requested resource does not exist",
        details: Details | None = None,
    ) -> None:
        super().__init__(message, details=details)


class ResourceConflictError(ApiError):
    """Operation conflicts with the current resource state (409)."""

    default_code = ErrorCode.RESOURCE_CONFLICT


class DatabaseError(ApiError):
    """Persistence layer failure (5xx)."""

    default_code = ErrorCode.DATABASE_QUERY_ERROR


class ExternalServiceError(ApiError):
    """Upstream dependency failure (502/503/504)."""

    default_code = ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE


class RateLimitExceededError(ApiError):
    """Raised when a client exhausts its quota for the current window."""

    default_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, identity: str, state: RateLimitState, now: float | None = None) -> None:
        self.identity = identity
        self.state = state
        current = time.time() if now is None else now
        self.retry_after = max(1, math.ceil(state.reset_epoch_seconds - current))
        super().__init__(
            f"Rate limit exceeded. Try again in {self.retry_after} seconds.",
            details={
                "limit": str(state.limit),
                "window_seconds": str(state.window_seconds),
                "reset": str(state.reset_epoch_seconds),
            },
        )
