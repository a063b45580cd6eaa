"""Integration tests for the bearer token authentication flow."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from httpx import AsyncClient


class TestAuthFlow:
    """Integration tests for token authentication."""

    @pytest.mark.asyncio
    async def test_unauthenticated_request_returns_401(self, client: AsyncClient) -> None:
        """Request without Authorization header should return AUTH_TOKEN_MISSING."""
        resp = await client.get("/api/v1/me")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "AUTH_TOKEN_MISSING"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_returns_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "AUTH_TOKEN_MISSING"

    @pytest.mark.asyncio
    async def test_invalid_token_returns_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "AUTH_TOKEN_INVALID"

    @pytest.mark.asyncio
    async def test_expired_token_returns_401(
        self, client: AsyncClient, make_token: Callable[..., str]
    ) -> None:
        token = make_token(expires_in=-60)
        resp = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "AUTH_TOKEN_EXPIRED"

    @pytest.mark.asyncio
    async def test_token_without_subject_returns_401(
        self, client: AsyncClient, make_token: Callable[..., str]
    ) -> None:
        token = make_token(sub=None)
        resp = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "AUTH_USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_valid_token_returns_user(
        self, client: AsyncClient, make_token: Callable[..., str]
    ) -> None:
        token = make_token(sub="user-42", name="Ada", scope="items:write")
        resp = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "success"
        assert body["data"]["user_id"] == "user-42"
        assert body["data"]["scopes"] == ["items:write"]

    @pytest.mark.asyncio
    async def test_missing_scope_returns_403(
        self, client: AsyncClient, make_token: Callable[..., str]
    ) -> None:
        token = make_token(sub="reader")
        resp = await client.delete(
            "/api/v1/items/anything", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["error"]["code"] == "AUTH_PERMISSION_DENIED"
        assert body["error"]["details"] == {"required_scope": "items:write"}
