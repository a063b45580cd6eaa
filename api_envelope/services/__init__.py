"""Business logic services for the API envelope service."""

from api_envelope.services.audit import RequestAuditEntry, log_request
from api_envelope.services.auth import AuthService, require_scope
from api_envelope.services.formatter import (
    format_error,
    format_paginated,
    format_success,
    rate_limit_headers,
    status_code_for,
)
from api_envelope.services.items import ItemStore
from api_envelope.services.rate_limiter import RateLimiter
from api_envelope.services.retry import RetryPolicy

__all__ = [
    "AuthService",
    "ItemStore",
    "RateLimiter",
    "RequestAuditEntry",
    "RetryPolicy",
    "format_error",
    "format_paginated",
    "format_success",
    "log_request",
    "rate_limit_headers",
    "require_scope",
    "status_code_for",
]
