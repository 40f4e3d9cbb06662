"""
auth/tokens.py -- Session token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the user id (sub), email, role, issued-at and expiry. verify() raises
       TokenError on any failure -- the API layer turns that into a 401.

  Expiry: checked against the service's injected clock rather than jose's
       internal wall clock, so tests can move time forward deterministically.
       A token is rejected at exp, not one second after it.

  SECRET_KEY: validated when the service is constructed, never per request.
       A production TokenService refuses an empty key or one shorter than
       32 characters [M6][M7]. Settings enforces the same rules earlier at
       startup; the check here covers services built outside get_settings().

The service holds no mutable state: the secret and lifetime are fixed at
construction, so one instance is shared by every request thread.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from jose import JWTError, jwt

from auth.models import TokenClaims, User
from core.config import parse_duration
from core.errors import ConfigurationError, TokenError

logger = logging.getLogger("projectdesk.auth")

_ALGORITHM = "HS256"
_MIN_SECRET_LENGTH = 32
_REQUIRED_CLAIMS = ("sub", "email", "role", "iat", "exp")


class TokenService:
    """Issue and verify signed, time-bound identity tokens.

    Args:
        secret:     HMAC signing key.
        expires_in: Token lifetime in the duration grammar ("15m", "24h", "7d").
        production: Apply the production secret policy.
        clock:      Returns the current time as epoch seconds. Defaults to time.time.
    """

    def __init__(
        self,
        secret: str,
        expires_in: str = "24h",
        *,
        production: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if not secret:
            raise ConfigurationError("Token signing secret must be set")
        if production and len(secret) < _MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"Token signing secret must be at least {_MIN_SECRET_LENGTH} characters in production"
            )
        try:
            self._lifetime = parse_duration(expires_in)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        self._secret = secret
        self.expires_in = expires_in
        self._clock = clock or time.time

    @property
    def lifetime_seconds(self) -> int:
        return self._lifetime

    def issue(self, user: User) -> str:
        """Encode a signed JWT for user. Expiry is now + configured lifetime."""
        now = int(self._clock())
        role = getattr(user.role, "value", user.role)
        payload = {
            "sub": user.id,
            "email": user.email,
            "role": role,
            "iat": now,
            "exp": now + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature and expiry; return the decoded claims unchanged."""
        if not token:
            raise TokenError("Token is required")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise TokenError() from exc

        if any(payload.get(name) in (None, "") for name in _REQUIRED_CLAIMS):
            raise TokenError("Invalid token structure")

        try:
            claims = TokenClaims(
                subject_id=str(payload["sub"]),
                email=str(payload["email"]),
                role=str(payload["role"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (TypeError, ValueError) as exc:
            raise TokenError("Invalid token structure") from exc

        if self._clock() >= claims.expires_at:
            raise TokenError("Token expired")
        return claims


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Return the token from an "Authorization: Bearer <token>" value, else None."""
    if not auth_header:
        return None
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]
