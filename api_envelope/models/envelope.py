"""Success envelopes and the rate-limit snapshot model."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class SuccessResponse(BaseModel):
    """Success envelope: ``{"status": "success", "data": ..., "message": ...}``."""

    status: Literal["success"] = "success"
    data: Any = None
    message: str | None = None


class Pagination(BaseModel):
    """Page metadata attached to collection responses."""

    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    has_next: bool
    has_previous: bool


class PaginatedResponse(SuccessResponse):
    """Success envelope for a single page of a collection."""

    data: list[Any] = Field(default_factory=list)
    pagination: Pagination


class RateLimitState(BaseModel):
    """Snapshot of one client's quota in the current window.

    Owned and mutated by the rate limiter; everything else reads copies.
    """

    limit: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)
    reset_epoch_seconds: int = Field(..., ge=0)
    window_seconds: int = Field(..., ge=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _remaining_within_limit(self) -> RateLimitState:
        if self.remaining > self.limit:
            raise ValueError("remaining must not exceed limit")
        return self
