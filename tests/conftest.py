"""Shared fixtures: settings, signed tokens and an in-process HTTP client."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from typing import Any

import jwt
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from api_envelope.config import Settings
from api_envelope.main import create_app

TEST_SECRET = "test-signing-secret-0123456789abcdef0123456789"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        log_level="WARNING",
        authenticated_rate_limit=5,
        unauthenticated_rate_limit=3,
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Return a factory for tokens signed with the test secret."""

    def _make(
        sub: str | None = "user-abc-123",
        expires_in: int = 3600,
        secret: str = TEST_SECRET,
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {"exp": int(time.time()) + expires_in, **claims}
        if sub is not None:
            payload["sub"] = sub
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
