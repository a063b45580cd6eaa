"""Envelope formatter: builds every response body the API returns.

All functions are pure value constructors. Only ``timestamp`` and a
``request_id`` that the caller did not supply are generated fresh, so the
module holds no state and is safe to call from any number of concurrent
requests.
"""

from __future__ import annotations

import math
import secrets
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from api_envelope.models.envelope import (
    PaginatedResponse,
    Pagination,
    RateLimitState,
    SuccessResponse,
)
from api_envelope.models.errors import (
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
    code_value,
    status_code_for,
)

REQUEST_ID_PREFIX = "req_"

RATE_LIMIT_LIMIT_HEADER = "X-RateLimit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"
RATE_LIMIT_WINDOW_HEADER = "X-RateLimit-Window"

__all__ = [
    "RATE_LIMIT_LIMIT_HEADER",
    "RATE_LIMIT_REMAINING_HEADER",
    "RATE_LIMIT_RESET_HEADER",
    "RATE_LIMIT_WINDOW_HEADER",
    "REQUEST_ID_PREFIX",
    "format_error",
    "format_paginated",
    "format_success",
    "new_request_id",
    "rate_limit_headers",
    "status_code_for",
    "utc_timestamp",
]


def new_request_id() -> str:
    """Return a fresh request id such as ``req_5f1c0a9e3b7d4c21a8e6f0b2``."""
    return REQUEST_ID_PREFIX + secrets.token_hex(12)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with second precision and a ``Z`` suffix."""
    return datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _normalize_details(details: Mapping[str, Any]) -> dict[str, str | list[str]]:
    normalized: dict[str, str | list[str]] = {}
    for key, value in details.items():
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            normalized[str(key)] = [str(item) for item in value]
        else:
            normalized[str(key)] = str(value)
    return normalized


def format_error(
    code: ErrorCode | str,
    message: str,
    details: Mapping[str, Any] | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Build an error envelope.

    Args:
        code: Error code; unknown strings are rendered as given.
        message: Human-readable description.
        details: Optional field-level context. Sequence values are kept as
            lists of strings, anything else is converted with ``str``.
        request_id: Id already assigned to the request. A fresh one is
            generated when omitted.

    Raises:
        TypeError: If ``details`` is given but is not a mapping.
    """
    if details is not None and not isinstance(details, Mapping):
        raise TypeError(f"details must be a mapping, got {type(details).__name__}")

    return ErrorResponse(
        error=ErrorDetail(
            code=code_value(code),
            message=message,
            details=_normalize_details(details) if details else None,
            timestamp=utc_timestamp(),
            request_id=request_id or new_request_id(),
        )
    )


def format_success(data: Any = None, message: str | None = None) -> SuccessResponse:
    """Wrap already-validated data in a success envelope."""
    return SuccessResponse(data=data, message=message)


def format_paginated(
    items: Sequence[Any],
    page: int,
    page_size: int,
    total: int,
    message: str | None = None,
) -> PaginatedResponse:
    """Wrap one page of a collection with its pagination metadata.

    Raises:
        ValueError: If ``page_size`` is not positive.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total_pages = math.ceil(total / page_size) if total else 0
    return PaginatedResponse(
        data=list(items),
        message=message,
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        ),
    )


def rate_limit_headers(state: RateLimitState) -> dict[str, str]:
    """Render a rate-limit snapshot as the four ``X-RateLimit-*`` headers."""
    return {
        RATE_LIMIT_LIMIT_HEADER: str(state.limit),
        RATE_LIMIT_REMAINING_HEADER: str(state.remaining),
        RATE_LIMIT_RESET_HEADER: str(state.reset_epoch_seconds),
        RATE_LIMIT_WINDOW_HEADER: str(state.window_seconds),
    }
