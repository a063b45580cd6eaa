"""Pydantic data models for the API envelope service."""

from api_envelope.models.envelope import (
    PaginatedResponse,
    Pagination,
    RateLimitState,
    SuccessResponse,
)
from api_envelope.models.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
    category_for,
    is_retryable,
    status_code_for,
)
from api_envelope.models.item import Item, ItemCreate
from api_envelope.models.user import User

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "Item",
    "ItemCreate",
    "PaginatedResponse",
    "Pagination",
    "RateLimitState",
    "SuccessResponse",
    "User",
    "category_for",
    "is_retryable",
    "status_code_for",
]
