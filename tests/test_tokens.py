"""
tests/test_tokens.py -- Unit tests for auth/tokens.py and core.config.parse_duration.

Coverage:
  - TokenService.issue/verify: claims round trip, expiry boundary via FakeClock
  - Rejection paths: empty token, wrong signing key, tampered payload,
    missing claims
  - Construction policy: empty secret, short secret in production vs dev,
    invalid lifetime
  - extract_bearer_token: header parsing
  - parse_duration: grammar and bad input
"""

from __future__ import annotations

import pytest
from jose import jwt

from auth.models import Role, User
from auth.tokens import TokenService, extract_bearer_token
from core.config import parse_duration
from core.errors import ConfigurationError, TokenError

from tests.fakes import TEST_SECRET, FakeClock


def _user() -> User:
    return User(
        id="u-123",
        email="ada@example.com",
        name="Ada Lovelace",
        password_hash="$2b$04$unused",
        role=Role.manager,
    )


class TestIssueAndVerify:
    def test_round_trip_returns_claims(self, token_service: TokenService, clock: FakeClock) -> None:
        token = token_service.issue(_user())
        claims = token_service.verify(token)
        assert claims.subject_id == "u-123"
        assert claims.email == "ada@example.com"
        assert claims.role == "manager"
        assert claims.issued_at == int(clock.now)
        assert claims.expires_at == int(clock.now) + 3600

    def test_lifetime_seconds(self, token_service: TokenService) -> None:
        assert token_service.lifetime_seconds == 3600

    def test_valid_just_before_expiry(self, token_service: TokenService, clock: FakeClock) -> None:
        token = token_service.issue(_user())
        clock.advance(3599)
        assert token_service.verify(token).subject_id == "u-123"

    def test_expired_at_exact_expiry(self, token_service: TokenService, clock: FakeClock) -> None:
        """A token is rejected once now >= exp, not only after."""
        token = token_service.issue(_user())
        clock.advance(3600)
        with pytest.raises(TokenError, match="Token expired"):
            token_service.verify(token)

    def test_two_tokens_differ_across_time(self, token_service: TokenService, clock: FakeClock) -> None:
        first = token_service.issue(_user())
        clock.advance(1)
        assert token_service.issue(_user()) != first


class TestVerifyRejects:
    def test_empty_token(self, token_service: TokenService) -> None:
        with pytest.raises(TokenError, match="Token is required"):
            token_service.verify("")

    def test_garbage_token(self, token_service: TokenService) -> None:
        with pytest.raises(TokenError, match="Invalid or expired token"):
            token_service.verify("not.a.jwt")

    def test_token_signed_with_other_secret(self, token_service: TokenService, clock: FakeClock) -> None:
        other = TokenService("another-secret-that-is-at-least-32-chars!", "1h", clock=clock)
        with pytest.raises(TokenError, match="Invalid or expired token"):
            token_service.verify(other.issue(_user()))

    def test_tampered_payload(self, token_service: TokenService) -> None:
        """Swapping in a forged payload segment must break the signature."""
        header, _payload, signature = token_service.issue(_user()).split(".")
        forged = jwt.encode({"sub": "u-999", "email": "x@example.com", "role": "admin"}, "k" * 32)
        forged_payload = forged.split(".")[1]
        with pytest.raises(TokenError):
            token_service.verify(f"{header}.{forged_payload}.{signature}")

    def test_missing_claims(self, token_service: TokenService, clock: FakeClock) -> None:
        token = jwt.encode({"sub": "u-123", "exp": int(clock.now) + 60}, TEST_SECRET, algorithm="HS256")
        with pytest.raises(TokenError, match="Invalid token structure"):
            token_service.verify(token)


class TestConstruction:
    def test_empty_secret_rejected_in_any_mode(self) -> None:
        with pytest.raises(ConfigurationError):
            TokenService("", production=False)

    def test_short_secret_rejected_in_production(self) -> None:
        with pytest.raises(ConfigurationError, match="at least 32 characters"):
            TokenService("short-secret", production=True)

    def test_short_secret_allowed_in_development(self) -> None:
        service = TokenService("short-secret", production=False)
        assert service.verify(service.issue(_user())).subject_id == "u-123"

    def test_invalid_lifetime_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            TokenService(TEST_SECRET, "forever")


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("bearer abc.def.ghi", None),
            ("Bearer a b", None),
            (None, None),
            ("", None),
            ("Basic dXNlcjpwYXNz", None),
            ("Bearer", None),
        ],
    )
    def test_parsing(self, header, expected) -> None:
        assert extract_bearer_token(header) == expected


class TestParseDuration:
    @pytest.mark.parametrize(
        "text,seconds",
        [("30s", 30), ("15m", 900), ("24h", 86400), ("7d", 604800), ("2w", 1209600)],
    )
    def test_units(self, text: str, seconds: int) -> None:
        assert parse_duration(text) == seconds

    @pytest.mark.parametrize("text", ["", "24", "h", "1.5h", "-1h", "10y", "0s"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_duration(text)
