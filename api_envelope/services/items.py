"""In-memory item store backing the sample collection endpoints."""

from __future__ import annotations

import logging
from asyncio import Lock

from api_envelope.exceptions import ResourceConflictError, ResourceNotFoundError
from api_envelope.models.errors import ErrorCode
from api_envelope.models.item import Item, ItemCreate

logger = logging.getLogger(__name__)


class ItemStore:
    """Keep items in insertion order; names are unique case-insensitively."""

    def __init__(self) -> None:
        self._items: dict[str, Item] = {}
        self._lock = Lock()

    async def create_item(self, body: ItemCreate, owner_id: str) -> Item:
        """Create a new item.

        Raises:
            ResourceConflictError: ``RESOURCE_ALREADY_EXISTS`` if the name is taken.
        """
        async with self._lock:
            wanted = body.name.casefold()
            if any(item.name.casefold() == wanted for item in self._items.values()):
                raise ResourceConflictError(
                    f"An item named '{body.name}' already exists.",
                    code=ErrorCode.RESOURCE_ALREADY_EXISTS,
                    details={"field": "name", "issue": "Value must be unique"},
                )
            item = Item(**body.model_dump(), owner_id=owner_id)
            self._items[item.id] = item
        logger.info("Created item", extra={"user_id": owner_id})
        return item

    async def get_item(self, item_id: str) -> Item:
        """Return one item or raise ``RESOURCE_NOT_FOUND``."""
        item = self._items.get(item_id)
        if item is None:
            raise ResourceNotFoundError(
                "Requested resource does not exist",
                details={"resource": "item", "id": item_id},
            )
        return item

    async def list_items(self, page: int, page_size: int) -> tuple[list[Item], int]:
        """Return one page of items and the total count."""
        items = list(self._items.values())
        start = (page - 1) * page_size
        return items[start : start + page_size], len(items)

    async def delete_item(self, item_id: str) -> None:
        async with self._lock:
            if self._items.pop(item_id, None) is None:
                raise ResourceNotFoundError(
                    "Requested resource does not exist",
                    details={"resource": "item", "id": item_id},
                )
