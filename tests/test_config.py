"""
tests/test_config.py -- Tests for core/config.py Settings validation.

Settings are constructed directly with _env_file=None and explicit field
values so the DEBUG/BCRYPT_ROUNDS defaults set by conftest.py do not leak
into the production-profile cases.

Coverage:
  - Production: missing secret, short secret, lowered bcrypt cost -> refuse to start
  - Development: auto-generated secret, default log level and CORS origins
  - Field validation: token lifetime grammar, bcrypt rounds bounds
  - Derived properties: is_production, token_lifetime_seconds
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_SECRET = "s" * 32


def _settings(**overrides) -> Settings:
    fields = {"debug": False, "secret_key": GOOD_SECRET, "bcrypt_rounds": 12}
    fields.update(overrides)
    return Settings(_env_file=None, **fields)


class TestProductionProfile:
    def test_valid_production_settings(self) -> None:
        settings = _settings()
        assert settings.is_production is True
        assert settings.log_level == "INFO"
        assert settings.cors_origins == []

    def test_missing_secret_refuses_to_start(self) -> None:
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            _settings(secret_key="")

    def test_short_secret_refuses_to_start(self) -> None:
        with pytest.raises(ValidationError, match="at least 32 characters"):
            _settings(secret_key="s" * 31)

    def test_low_bcrypt_rounds_refused(self) -> None:
        with pytest.raises(ValidationError, match="BCRYPT_ROUNDS below 10"):
            _settings(bcrypt_rounds=4)


class TestDevelopmentProfile:
    def test_secret_auto_generated(self) -> None:
        settings = _settings(debug=True, secret_key="")
        assert len(settings.secret_key) == 64
        assert settings.is_production is False

    def test_short_secret_and_low_rounds_allowed(self) -> None:
        settings = _settings(debug=True, secret_key="dev", bcrypt_rounds=4)
        assert settings.secret_key == "dev"
        assert settings.bcrypt_rounds == 4

    def test_dev_defaults(self) -> None:
        settings = _settings(debug=True)
        assert settings.log_level == "DEBUG"
        assert "http://localhost:3000" in settings.cors_origins

    def test_explicit_log_level_kept(self) -> None:
        assert _settings(debug=True, log_level="WARNING").log_level == "WARNING"


class TestFieldValidation:
    def test_token_lifetime(self) -> None:
        settings = _settings(token_expires_in="15m")
        assert settings.token_lifetime_seconds == 900

    def test_default_token_lifetime_is_one_day(self) -> None:
        assert _settings().token_lifetime_seconds == 86400

    @pytest.mark.parametrize("value", ["24", "1 day", "0h"])
    def test_bad_token_lifetime(self, value: str) -> None:
        with pytest.raises(ValidationError):
            _settings(token_expires_in=value)

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_bounds(self, rounds: int) -> None:
        with pytest.raises(ValidationError, match="between 4 and 31"):
            _settings(debug=True, bcrypt_rounds=rounds)
