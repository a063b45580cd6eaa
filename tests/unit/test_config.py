"""Unit tests for configuration loader."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from api_envelope.config import Settings, get_settings


class TestSettings:
    """Tests for the Settings configuration model."""

    def _env_vars(self) -> dict[str, str]:
        """Return a complete set of environment variables."""
        return {
            "JWT_SECRET": "secret-789",
            "JWT_ALGORITHM": "HS512",
            "JWT_AUDIENCE": "api://envelope",
            "RATE_LIMIT_ENABLED": "false",
            "AUTHENTICATED_RATE_LIMIT": "5000",
            "UNAUTHENTICATED_RATE_LIMIT": "50",
            "RATE_LIMIT_WINDOW_SECONDS": "60",
            "DEFAULT_PAGE_SIZE": "10",
            "MAX_PAGE_SIZE": "50",
            "LOG_LEVEL": "DEBUG",
        }

    def test_settings_loads_all_env_vars(self) -> None:
        env = self._env_vars()
        with patch.dict(os.environ, env, clear=False):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.jwt_secret == "secret-789"
        assert settings.jwt_algorithm == "HS512"
        assert settings.jwt_audience == "api://envelope"
        assert settings.rate_limit_enabled is False
        assert settings.authenticated_rate_limit == 5000
        assert settings.unauthenticated_rate_limit == 50
        assert settings.rate_limit_window_seconds == 60
        assert settings.default_page_size == 10
        assert settings.max_page_size == 50
        assert settings.log_level == "DEBUG"

    def test_settings_uses_documented_defaults(self) -> None:
        with patch.dict(os.environ, {"JWT_SECRET": "s"}, clear=True):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.jwt_algorithm == "HS256"
        assert settings.jwt_audience == ""
        assert settings.rate_limit_enabled is True
        assert settings.authenticated_rate_limit == 1000
        assert settings.unauthenticated_rate_limit == 100
        assert settings.rate_limit_window_seconds == 3600
        assert settings.trust_forwarded_for is False
        assert settings.log_level == "INFO"

    def test_settings_missing_required_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True), pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_settings_rejects_unsupported_algorithm(self) -> None:
        with (
            patch.dict(os.environ, {"JWT_SECRET": "s", "JWT_ALGORITHM": "none"}, clear=True),
            pytest.raises(ValidationError),
        ):
            Settings(_env_file=None)  # type: ignore[call-arg]

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("AUTHENTICATED_RATE_LIMIT", "-1"),
            ("UNAUTHENTICATED_RATE_LIMIT", "-1"),
            ("RATE_LIMIT_WINDOW_SECONDS", "0"),
            ("DEFAULT_PAGE_SIZE", "0"),
            ("MAX_PAGE_SIZE", "0"),
        ],
    )
    def test_get_settings_rejects_out_of_range_values(self, name: str, value: str) -> None:
        with (
            patch.dict(os.environ, {"JWT_SECRET": "s", name: value}, clear=True),
            pytest.raises(ValidationError, match=name.lower()),
        ):
            get_settings()

    def test_zero_quota_is_allowed(self) -> None:
        with patch.dict(
            os.environ, {"JWT_SECRET": "s", "UNAUTHENTICATED_RATE_LIMIT": "0"}, clear=True
        ):
            settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.unauthenticated_rate_limit == 0

    def test_get_settings_returns_instance(self) -> None:
        env = self._env_vars()
        with patch.dict(os.environ, env, clear=False):
            settings = get_settings()

        assert isinstance(settings, Settings)
