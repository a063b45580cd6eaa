"""Error codes, HTTP status mapping and the error response envelope."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes from the API contract."""

    AUTH_TOKEN_MISSING = "AUTH_TOKEN_MISSING"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_TOKEN_EXPIRED = "AUTH_TOKEN_EXPIRED"
    AUTH_USER_NOT_FOUND = "AUTH_USER_NOT_FOUND"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"

    VALIDATION_REQUIRED_FIELD = "VALIDATION_REQUIRED_FIELD"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
    VALIDATION_VALUE_TOO_LONG = "VALIDATION_VALUE_TOO_LONG"
    VALIDATION_VALUE_TOO_SHORT = "VALIDATION_VALUE_TOO_SHORT"
    VALIDATION_INVALID_CHOICE = "VALIDATION_INVALID_CHOICE"
    VALIDATION_UNIQUE_CONSTRAINT = "VALIDATION_UNIQUE_CONSTRAINT"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    RESOURCE_LOCKED = "RESOURCE_LOCKED"
    RESOURCE_DEPENDENCY_MISSING = "RESOURCE_DEPENDENCY_MISSING"

    DATABASE_CONNECTION_ERROR = "DATABASE_CONNECTION_ERROR"
    DATABASE_QUERY_ERROR = "DATABASE_QUERY_ERROR"
    DATABASE_CONSTRAINT_ERROR = "DATABASE_CONSTRAINT_ERROR"
    DATABASE_TIMEOUT = "DATABASE_TIMEOUT"
    DATABASE_LOCK_TIMEOUT = "DATABASE_LOCK_TIMEOUT"

    EXTERNAL_SERVICE_UNAVAILABLE = "EXTERNAL_SERVICE_UNAVAILABLE"
    EXTERNAL_SERVICE_TIMEOUT = "EXTERNAL_SERVICE_TIMEOUT"
    EXTERNAL_SERVICE_AUTH_ERROR = "EXTERNAL_SERVICE_AUTH_ERROR"
    EXTERNAL_SERVICE_RATE_LIMIT = "EXTERNAL_SERVICE_RATE_LIMIT"

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class ErrorCategory(str, Enum):
    """Error families, named after the code prefix."""

    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    RESOURCE = "RESOURCE"
    DATABASE = "DATABASE"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    RATE_LIMIT = "RATE_LIMIT"
    UNKNOWN = "UNKNOWN"


DEFAULT_STATUS_CODE = 500

# Code used for failures outside the documented taxonomy; maps to 500
INTERNAL_ERROR_CODE = "INTERNAL_ERROR"

ALLOWED_STATUS_CODES = frozenset({400, 401, 403, 404, 405, 409, 422, 429, 500, 502, 503, 504})

_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.AUTH_TOKEN_MISSING: 401,
    ErrorCode.AUTH_TOKEN_INVALID: 401,
    ErrorCode.AUTH_TOKEN_EXPIRED: 401,
    ErrorCode.AUTH_USER_NOT_FOUND: 401,
    ErrorCode.AUTH_PERMISSION_DENIED: 403,
    ErrorCode.VALIDATION_REQUIRED_FIELD: 400,
    ErrorCode.VALIDATION_INVALID_FORMAT: 400,
    ErrorCode.VALIDATION_VALUE_TOO_LONG: 400,
    ErrorCode.VALIDATION_VALUE_TOO_SHORT: 400,
    ErrorCode.VALIDATION_INVALID_CHOICE: 400,
    ErrorCode.VALIDATION_UNIQUE_CONSTRAINT: 400,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.RESOURCE_DEPENDENCY_MISSING: 404,
    ErrorCode.RESOURCE_ALREADY_EXISTS: 409,
    ErrorCode.RESOURCE_CONFLICT: 409,
    ErrorCode.RESOURCE_LOCKED: 409,
    ErrorCode.DATABASE_CONNECTION_ERROR: 503,
    ErrorCode.DATABASE_QUERY_ERROR: 500,
    ErrorCode.DATABASE_CONSTRAINT_ERROR: 500,
    ErrorCode.DATABASE_TIMEOUT: 504,
    ErrorCode.DATABASE_LOCK_TIMEOUT: 504,
    ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE: 503,
    ErrorCode.EXTERNAL_SERVICE_TIMEOUT: 504,
    ErrorCode.EXTERNAL_SERVICE_AUTH_ERROR: 502,
    ErrorCode.EXTERNAL_SERVICE_RATE_LIMIT: 502,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
}


def code_value(code: ErrorCode | str) -> str:
    """Return the wire string for an error code given as enum or string."""
    if isinstance(code, ErrorCode):
        return code.value
    return str(code)


def _lookup(code: ErrorCode | str) -> ErrorCode | None:
    try:
        return ErrorCode(code_value(code))
    except ValueError:
        return None


def status_code_for(code: ErrorCode | str) -> int:
    """Map an error code to its HTTP status; unknown codes map to 500."""
    known = _lookup(code)
    if known is None:
        return DEFAULT_STATUS_CODE
    return _STATUS_CODES[known]


def category_for(code: ErrorCode | str) -> ErrorCategory:
    """Return the error family a code belongs to."""
    known = _lookup(code)
    if known is None:
        return ErrorCategory.UNKNOWN
    # EXTERNAL_SERVICE and RATE_LIMIT prefixes contain an underscore
    for category in (ErrorCategory.EXTERNAL_SERVICE, ErrorCategory.RATE_LIMIT):
        if known.value.startswith(category.value + "_"):
            return category
    return ErrorCategory(known.value.split("_", 1)[0])


def is_retryable(code: ErrorCode | str) -> bool:
    """Whether a caller may retry a request that failed with this code.

    Only server-side failures (5xx) are retryable; 4xx never are.
    """
    return status_code_for(code) >= 500


DetailValue = str | list[str]


class ErrorDetail(BaseModel):
    """Body of the ``error`` member of an error envelope."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    details: dict[str, DetailValue] | None = Field(
        None, description="Optional field-level context"
    )
    timestamp: str = Field(..., description="ISO-8601 UTC time the error was rendered")
    request_id: str = Field(..., description="Correlation id of the failing request")


class ErrorResponse(BaseModel):
    """Structured error envelope: ``{"status": "error", "error": {...}}``."""

    status: Literal["error"] = "error"
    error: ErrorDetail

    def to_dict(self) -> dict:
        """Serialize for a JSON response body; ``details`` is omitted when empty."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_json(self) -> str:
        """Serialize to compact JSON with the documented key order."""
        return self.model_dump_json(exclude_none=True)
