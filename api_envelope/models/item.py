"""Item resource models for the sample collection endpoints."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

ItemCategory = Literal["book", "tool", "other"]


class ItemCreate(BaseModel):
    """Request body for POST /api/v1/items."""

    name: str = Field(..., min_length=1, max_length=100, description="Unique item name")
    description: str = Field("", max_length=500)
    category: ItemCategory = "other"


class Item(BaseModel):
    """A stored item."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    description: str = ""
    category: ItemCategory = "other"
    owner_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
