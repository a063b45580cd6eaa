"""User model derived from bearer token claims."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class User(BaseModel):
    """Authenticated caller populated from JWT claims.

    Not persisted; derived on each request from the bearer token and used
    as the rate-limit identity for authenticated traffic.
    """

    user_id: str = Field(..., description="Token subject (``sub`` claim)")
    display_name: str = Field(..., max_length=256, description="User display name")
    email: str = Field("", description="User email address")
    scopes: list[str] = Field(default_factory=list, description="Granted scopes")

    @classmethod
    def from_jwt_claims(cls, claims: dict[str, Any]) -> User:
        """Construct a User from decoded JWT token claims.

        Expected claims:
            - sub: Subject → user_id
            - name: Display name → display_name
            - email: Email → email
            - scope: Space-separated scopes (or ``scopes`` list) → scopes
        """
        raw_scopes = claims.get("scopes")
        if raw_scopes is None:
            raw_scopes = claims.get("scope", "").split()
        return cls(
            user_id=claims["sub"],
            display_name=claims.get("name", "Unknown"),
            email=claims.get("email", ""),
            scopes=list(raw_scopes),
        )

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes
