"""Request-context and rate-limit middleware."""

from __future__ import annotations

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from api_envelope.config import Settings
from api_envelope.exceptions import RateLimitExceededError
from api_envelope.handlers import REQUEST_ID_HEADER, rate_limited_response
from api_envelope.services.audit import RequestAuditEntry, log_request
from api_envelope.services.auth import AuthService
from api_envelope.services.formatter import new_request_id, rate_limit_headers
from api_envelope.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Probes must never consume a client's quota
RATE_LIMIT_EXEMPT_PATHS = frozenset({"/health"})

# Inbound ids are echoed into logs and headers, so only simple tokens are accepted
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """Extract client IP, using the first X-Forwarded-For hop when trusted."""
    forwarded = request.headers.get("X-Forwarded-For") if trust_forwarded_for else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, echo it in ``X-Request-ID`` and write the access log."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = inbound if _VALID_REQUEST_ID.match(inbound) else new_request_id()
        request.state.request_id = request_id
        start_time = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            await self._audit(request, 500, start_time)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        await self._audit(request, response.status_code, start_time)
        return response

    async def _audit(self, request: Request, status_code: int, start_time: float) -> None:
        settings: Settings = request.app.state.settings
        client_id = getattr(request.state, "client_id", None) or (
            f"ip:{client_ip(request, settings.trust_forwarded_for)}"
        )
        await log_request(
            RequestAuditEntry(
                request_id=request.state.request_id,
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                client_id=client_id,
                latency_ms=int((time.monotonic() - start_time) * 1000),
                error_code=getattr(request.state, "error_code", None),
            )
        )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client quota enforcement.

    Authenticated callers are counted by token subject against the
    authenticated quota; everyone else by client IP against the anonymous
    quota. Every counted response carries the ``X-RateLimit-*`` headers and
    rejected requests get a 429 envelope with ``Retry-After``.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings: Settings = request.app.state.settings
        if not settings.rate_limit_enabled or request.url.path in RATE_LIMIT_EXEMPT_PATHS:
            return await call_next(request)

        identity, limit = await self._identify(request, settings)
        request.state.client_id = identity

        limiter: RateLimiter = request.app.state.rate_limiter
        try:
            state = await limiter.hit(identity, limit)
        except RateLimitExceededError as exc:
            return rate_limited_response(request, exc)

        response = await call_next(request)
        for name, value in rate_limit_headers(state).items():
            response.headers[name] = value
        return response

    async def _identify(self, request: Request, settings: Settings) -> tuple[str, int]:
        user = await AuthService(settings).identify(request.headers.get("Authorization"))
        if user is not None:
            return f"user:{user.user_id}", settings.authenticated_rate_limit
        return (
            f"ip:{client_ip(request, settings.trust_forwarded_for)}",
            settings.unauthenticated_rate_limit,
        )
