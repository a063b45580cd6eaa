"""Request audit trail written to structured logs."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class RequestAuditEntry(BaseModel):
    """One record per completed request/response cycle.

    Written to structured logs (JSON); never persisted.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    request_id: str = Field(..., description="Correlation id echoed in X-Request-ID")
    method: str
    path: str
    status_code: int
    client_id: str = Field(..., description="Rate-limit identity of the caller")
    latency_ms: int = Field(..., description="End-to-end handling time in ms")
    error_code: str | None = Field(None, description="Envelope error code, if any")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))


async def log_request(entry: RequestAuditEntry) -> None:
    """Write an audit entry to structured JSON logs.

    Server errors are logged at ERROR, client errors at WARNING.

    Args:
        entry: The audit entry to log.
    """
    if entry.status_code >= 500:
        level = logging.ERROR
    elif entry.status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger.log(
        level,
        "access_log",
        extra={
            "request_id": entry.request_id,
            "method": entry.method,
            "path": entry.path,
            "status_code": entry.status_code,
            "client_id": entry.client_id,
            "latency_ms": entry.latency_ms,
            "error_code": entry.error_code,
        },
    )
