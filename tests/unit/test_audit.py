"""Unit tests for RequestAuditEntry model and log_request function."""

from __future__ import annotations

import logging

import pytest

from api_envelope.services.audit import RequestAuditEntry, log_request


def _entry(**overrides: object) -> RequestAuditEntry:
    fields: dict[str, object] = {
        "request_id": "req_0001",
        "method": "GET",
        "path": "/api/v1/items",
        "status_code": 200,
        "client_id": "ip:127.0.0.1",
        "latency_ms": 12,
    }
    fields.update(overrides)
    return RequestAuditEntry(**fields)  # type: ignore[arg-type]


class TestRequestAuditEntry:
    """Tests for RequestAuditEntry model."""

    def test_create_with_required_fields(self) -> None:
        entry = _entry()
        assert entry.request_id == "req_0001"
        assert entry.error_code is None
        assert entry.id  # auto-generated UUID
        assert entry.timestamp  # auto-generated

    def test_error_entry(self) -> None:
        entry = _entry(status_code=429, error_code="RATE_LIMIT_EXCEEDED")
        assert entry.error_code == "RATE_LIMIT_EXCEEDED"


class TestLogRequest:
    """Tests for the log_request function."""

    @pytest.mark.asyncio
    async def test_success_logged_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="api_envelope.services.audit"):
            await log_request(_entry())

        assert "access_log" in caplog.text
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.request_id == "req_0001"  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_client_error_logged_at_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="api_envelope.services.audit"):
            await log_request(_entry(status_code=404, error_code="RESOURCE_NOT_FOUND"))

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.error_code == "RESOURCE_NOT_FOUND"  # type: ignore[attr-defined]

    @pytest.mark.asyncio
    async def test_server_error_logged_at_error(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="api_envelope.services.audit"):
            await log_request(_entry(status_code=503))

        assert caplog.records[-1].levelno == logging.ERROR
