"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for ProjectDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. DEBUG selects the configuration profile:
      DEBUG=true is development/test, anything else is production.

Security notes:
  [M6] In production, SECRET_KEY shorter than 32 chars is rejected outright.
       JWT HS256 signing relies on key entropy -- a short key weakens it.

  [M7] In production mode (DEBUG not set or false), a missing SECRET_KEY is a
       hard startup failure. Development auto-generates a random key.

  [M8] BCRYPT_ROUNDS below 10 is only accepted in development. Test suites
       run with 4 rounds to stay fast; production must not.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import re
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("projectdesk.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'projectdesk_auth.db'}"
_DEV_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]

# ---------------------------------------------------------------------------
# Duration grammar -- "<integer><unit>", unit in s/m/h/d/w
# ---------------------------------------------------------------------------

_DURATION_RE = re.compile(r"^(\d+)([smhdw])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60, "w": 7 * 24 * 60 * 60}


def parse_duration(text: str) -> int:
    """Convert a duration like "15m" or "24h" into seconds.

    Raises ValueError for anything outside the grammar, including a zero
    duration. Settings runs this at startup so a typo in TOKEN_EXPIRES_IN
    stops the process instead of silently falling back to a default.
    """
    match = _DURATION_RE.match(text.strip()) if text else None
    if match is None:
        raise ValueError(f"Invalid duration {text!r}. Expected <integer><unit> with unit one of s, m, h, d, w.")
    value = int(match.group(1))
    if value <= 0:
        raise ValueError(f"Duration must be positive, got {text!r}.")
    return value * _UNIT_SECONDS[match.group(2)]


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL
    log_level: str = ""
    cors_origins: list[str] = []

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expires_in: str = "24h"
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    rate_limit_sweep_seconds: float = 60.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("token_expires_in")
    @classmethod
    def validate_token_expires_in(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @model_validator(mode="after")
    def validate_production_profile(self) -> "Settings":
        """Enforce SECRET_KEY and hashing-cost policy [M6][M7][M8].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing or shorter than 32 characters, or if the
            bcrypt cost factor was lowered below 10.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if not self.debug:
            if len(self.secret_key) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production.")
            if self.bcrypt_rounds < 10:
                raise ValueError("BCRYPT_ROUNDS below 10 is only allowed with DEBUG=true.")
        if not self.log_level:
            self.log_level = "DEBUG" if self.debug else "INFO"
        if not self.cors_origins and self.debug:
            self.cors_origins = list(_DEV_CORS_ORIGINS)
        return self

    @property
    def is_production(self) -> bool:
        return not self.debug

    @property
    def token_lifetime_seconds(self) -> int:
        return parse_duration(self.token_expires_in)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
