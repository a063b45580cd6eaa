"""Bearer token authentication service."""

from __future__ import annotations

import logging
from typing import Any

import jwt

from api_envelope.exceptions import AuthenticationError, PermissionDeniedError
from api_envelope.models.errors import ErrorCode
from api_envelope.models.user import User

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class AuthService:
    """Validates HMAC-signed JWT bearer tokens.

    Handles:
    1. Authorization header parsing (``Bearer <token>``)
    2. Signature, expiration and optional audience verification
    3. User extraction from JWT claims
    """

    def __init__(self, settings: Any) -> None:
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._audience = settings.jwt_audience or None

    async def validate_token(self, authorization_header: str | None) -> User:
        """Validate a Bearer token and return the authenticated User.

        Args:
            authorization_header: Full Authorization header value (e.g., "Bearer <token>").

        Returns:
            User extracted from validated JWT claims.

        Raises:
            AuthenticationError: With ``AUTH_TOKEN_MISSING``, ``AUTH_TOKEN_INVALID``,
                ``AUTH_TOKEN_EXPIRED`` or ``AUTH_USER_NOT_FOUND``.
        """
        token = self._extract_token(authorization_header)
        payload = self._decode_token(token)

        if not payload.get("sub"):
            raise AuthenticationError(
                "Token does not identify a user.",
                code=ErrorCode.AUTH_USER_NOT_FOUND,
            )

        return User.from_jwt_claims(payload)

    async def identify(self, authorization_header: str | None) -> User | None:
        """Return the caller if the header carries a valid token, else None.

        Used where anonymous access is allowed and a bad token simply means
        the request is treated as unauthenticated.
        """
        if not authorization_header:
            return None
        try:
            return await self.validate_token(authorization_header)
        except AuthenticationError as exc:
            logger.debug("Treating request as anonymous: %s", exc.message)
            return None

    def _extract_token(self, authorization_header: str | None) -> str:
        if not authorization_header or not authorization_header.startswith(BEARER_PREFIX):
            raise AuthenticationError(
                "Missing or invalid Authorization header. Bearer token required.",
                code=ErrorCode.AUTH_TOKEN_MISSING,
            )

        token = authorization_header.removeprefix(BEARER_PREFIX).strip()
        if not token:
            raise AuthenticationError("Empty bearer token.", code=ErrorCode.AUTH_TOKEN_MISSING)
        return token

    def _decode_token(self, token: str) -> dict[str, Any]:
        """Verify the token signature and registered claims."""
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError(
                "Token expired: token has passed its expiration time.",
                code=ErrorCode.AUTH_TOKEN_EXPIRED,
            ) from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(
                f"Invalid token: {e}",
                code=ErrorCode.AUTH_TOKEN_INVALID,
            ) from e

    def issue_token(self, claims: dict[str, Any]) -> str:
        """Sign a token with the configured secret (used for local tooling and tests)."""
        payload = dict(claims)
        if self._audience is not None:
            payload.setdefault("aud", self._audience)
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)


def require_scope(user: User, scope: str) -> None:
    """Raise ``AUTH_PERMISSION_DENIED`` unless ``user`` was granted ``scope``."""
    if not user.has_scope(scope):
        raise PermissionDeniedError(
            f"Scope '{scope}' is required for this operation.",
            details={"required_scope": scope},
        )
