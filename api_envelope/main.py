"""FastAPI application entry point for the API envelope service."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import Depends, FastAPI, Query, Request
from pydantic import BaseModel

from api_envelope import __version__
from api_envelope.config import Settings, get_settings
from api_envelope.handlers import register_error_handlers
from api_envelope.logging_config import setup_logging
from api_envelope.middleware import RateLimitMiddleware, RequestContextMiddleware
from api_envelope.models.envelope import PaginatedResponse, SuccessResponse
from api_envelope.models.item import ItemCreate
from api_envelope.models.user import User
from api_envelope.services.auth import AuthService, require_scope
from api_envelope.services.formatter import format_paginated, format_success
from api_envelope.services.items import ItemStore
from api_envelope.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

ITEMS_WRITE_SCOPE = "items:write"


class HealthStatus(BaseModel):
    """Payload of the health check envelope."""

    status: str
    version: str
    timestamp: str


def configure_state(app: FastAPI, settings: Settings) -> None:
    """Attach settings and the per-process collaborators to ``app.state``."""
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter(window_seconds=settings.rate_limit_window_seconds)
    app.state.item_store = ItemStore()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown."""
    if not hasattr(app.state, "settings"):
        configure_state(app, get_settings())
    setup_logging(app.state.settings.log_level)
    logger.info("API envelope service starting up")

    yield

    logger.info("API envelope service shutting down")


async def get_current_user(request: Request) -> User:
    """FastAPI dependency: extract and validate the Bearer token.

    Raises an ``AUTH_*`` error envelope if the token is missing or invalid.
    """
    settings: Settings = request.app.state.settings
    auth_service = AuthService(settings)
    return await auth_service.validate_token(request.headers.get("Authorization"))


def get_item_store(request: Request) -> ItemStore:
    return request.app.state.item_store


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Use these settings instead of loading them from the
            environment at startup.
    """
    application = FastAPI(
        title="API Envelope Service",
        version=__version__,
        description="JSON API with a uniform response envelope and per-client rate limits",
        lifespan=lifespan,
    )
    if settings is not None:
        configure_state(application, settings)

    register_error_handlers(application)

    # Added last runs first: the request id exists before rate limiting
    application.add_middleware(RateLimitMiddleware)
    application.add_middleware(RequestContextMiddleware)

    @application.get("/", response_model=SuccessResponse)
    async def root() -> SuccessResponse:
        """Root endpoint with API info."""
        return format_success(
            {
                "name": "API Envelope Service",
                "version": __version__,
                "docs": "/docs",
                "health": "/health",
            }
        )

    @application.get("/health", response_model=SuccessResponse)
    async def health_check() -> SuccessResponse:
        """Health check endpoint for liveness probes; never rate limited."""
        return format_success(
            HealthStatus(
                status="healthy",
                version=__version__,
                timestamp=datetime.now(tz=UTC).isoformat(),
            ).model_dump()
        )

    @application.get("/api/v1/me", response_model=SuccessResponse)
    async def whoami(current_user: User = Depends(get_current_user)) -> SuccessResponse:
        """Return the authenticated caller."""
        return format_success(current_user.model_dump())

    @application.get("/api/v1/items", response_model=PaginatedResponse)
    async def list_items(
        request: Request,
        page: int = Query(1, ge=1),
        page_size: int | None = Query(None, ge=1),
        store: ItemStore = Depends(get_item_store),
    ) -> PaginatedResponse:
        """List items one page at a time, in creation order."""
        settings: Settings = request.app.state.settings
        size = min(page_size or settings.default_page_size, settings.max_page_size)
        items, total = await store.list_items(page=page, page_size=size)
        return format_paginated(
            [item.model_dump(mode="json") for item in items],
            page=page,
            page_size=size,
            total=total,
        )

    @application.post("/api/v1/items", response_model=SuccessResponse, status_code=201)
    async def create_item(
        body: ItemCreate,
        current_user: User = Depends(get_current_user),
        store: ItemStore = Depends(get_item_store),
    ) -> SuccessResponse:
        """Create an item; names must be unique."""
        item = await store.create_item(body, owner_id=current_user.user_id)
        return format_success(item.model_dump(mode="json"), message="Item created")

    @application.get("/api/v1/items/{item_id}", response_model=SuccessResponse)
    async def get_item(
        item_id: str,
        store: ItemStore = Depends(get_item_store),
    ) -> SuccessResponse:
        """Fetch a single item."""
        item = await store.get_item(item_id)
        return format_success(item.model_dump(mode="json"))

    @application.delete("/api/v1/items/{item_id}", response_model=SuccessResponse)
    async def delete_item(
        item_id: str,
        current_user: User = Depends(get_current_user),
        store: ItemStore = Depends(get_item_store),
    ) -> SuccessResponse:
        """Delete an item. Requires the ``items:write`` scope."""
        require_scope(current_user, ITEMS_WRITE_SCOPE)
        await store.delete_item(item_id)
        return format_success(None, message="Item deleted")

    return application


app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    import uvicorn

    uvicorn.run("api_envelope.main:app", host="0.0.0.0", port=8000)
