"""Centralized error handlers for FastAPI.

Maps application errors, request validation failures and framework HTTP
errors to the error envelope. No stack traces or internal details are
exposed to clients.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api_envelope.exceptions import ApiError, RateLimitExceededError
from api_envelope.models.errors import (
    INTERNAL_ERROR_CODE,
    ErrorCode,
    code_value,
    status_code_for,
)
from api_envelope.services.formatter import format_error, new_request_id, rate_limit_headers

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# pydantic error ``type`` → validation error code; anything else is a format error
_VALIDATION_CODES: dict[str, ErrorCode] = {
    "missing": ErrorCode.VALIDATION_REQUIRED_FIELD,
    "string_too_long": ErrorCode.VALIDATION_VALUE_TOO_LONG,
    "too_long": ErrorCode.VALIDATION_VALUE_TOO_LONG,
    "string_too_short": ErrorCode.VALIDATION_VALUE_TOO_SHORT,
    "too_short": ErrorCode.VALIDATION_VALUE_TOO_SHORT,
    "literal_error": ErrorCode.VALIDATION_INVALID_CHOICE,
    "enum": ErrorCode.VALIDATION_INVALID_CHOICE,
}

_HTTP_STATUS_CODES: dict[int, str] = {
    401: ErrorCode.AUTH_TOKEN_MISSING.value,
    403: ErrorCode.AUTH_PERMISSION_DENIED.value,
    404: ErrorCode.RESOURCE_NOT_FOUND.value,
    405: "METHOD_NOT_ALLOWED",
    409: ErrorCode.RESOURCE_CONFLICT.value,
    429: ErrorCode.RATE_LIMIT_EXCEEDED.value,
}

_REQUEST_LOCATIONS = frozenset({"body", "query", "path", "header", "cookie"})


def get_request_id(request: Request) -> str:
    """Return the id assigned to this request, assigning one if missing."""
    rid = getattr(request.state, "request_id", None)
    if isinstance(rid, str) and rid:
        return rid
    rid = new_request_id()
    request.state.request_id = rid
    return rid


def envelope_response(
    request: Request,
    code: ErrorCode | str,
    message: str,
    details: Mapping[str, Any] | None = None,
    status_code: int | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Render an error envelope for ``request``.

    The status defaults to the code's mapped status. The code is recorded
    on ``request.state`` for the access log.
    """
    body = format_error(code, message, details, request_id=get_request_id(request))
    request.state.error_code = body.error.code
    return JSONResponse(
        status_code=status_code or status_code_for(code),
        content=body.to_dict(),
        headers=dict(headers) if headers else None,
    )


def rate_limited_response(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """429 envelope carrying the quota headers and ``Retry-After``."""
    headers = rate_limit_headers(exc.state)
    headers["Retry-After"] = str(exc.retry_after)
    return envelope_response(request, exc.code, exc.message, exc.details, headers=headers)


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = list(loc)
    if len(parts) > 1 and parts[0] in _REQUEST_LOCATIONS:
        parts = parts[1:]
    return ".".join(str(part) for part in parts)


def validation_details(errors: list[dict[str, Any]]) -> tuple[ErrorCode, dict[str, Any]]:
    """Pick the error code and field details for a list of pydantic errors."""
    first = errors[0]
    code = _VALIDATION_CODES.get(first.get("type", ""), ErrorCode.VALIDATION_INVALID_FORMAT)
    details: dict[str, Any] = {
        "field": _field_name(tuple(first.get("loc", ()))),
        "issue": first.get("msg", "Invalid value"),
    }
    if len(errors) > 1:
        details["errors"] = [
            f"{_field_name(tuple(err.get('loc', ())))}: {err.get('msg', 'Invalid value')}"
            for err in errors
        ]
    return code, details


def register_error_handlers(app: FastAPI) -> None:
    """Register all envelope error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Quota exhausted inside a route (the middleware covers the common case)."""
        return rate_limited_response(request, exc)

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        """Render any application error with its mapped status."""
        if exc.status_code >= 500:
            logger.error(
                "Request failed: %s",
                exc.message,
                extra={"request_id": get_request_id(request), "error_code": code_value(exc.code)},
            )
        return envelope_response(request, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Map pydantic request validation failures to ``VALIDATION_*`` codes."""
        errors = list(exc.errors())
        if not errors:
            return envelope_response(
                request, ErrorCode.VALIDATION_INVALID_FORMAT, "Invalid input data"
            )
        code, details = validation_details(errors)
        return envelope_response(request, code, "Invalid input data", details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Routing and framework errors (unknown path, wrong method, ...)."""
        code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return envelope_response(
            request,
            code,
            message,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        request_id = get_request_id(request)
        logger.exception(
            "Unexpected error: %s",
            type(exc).__name__,
            extra={"request_id": request_id},
        )
        # Served outside the user middleware stack, so the id header is set here
        return envelope_response(
            request,
            INTERNAL_ERROR_CODE,
            "An unexpected error occurred. Please try again later.",
            headers={REQUEST_ID_HEADER: request_id},
        )
