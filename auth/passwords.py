"""
auth/passwords.py -- Password hashing, strength policy, and random generation.

Security design decisions:
  Hashing: bcrypt directly (no passlib wrapper). bcrypt is adaptive (the cost
       factor is embedded in every hash), salts every call, and checkpw()
       compares in constant time. The cost factor comes from
       Settings.bcrypt_rounds; the test suite runs with 4 rounds, production
       refuses anything below 10 [M8].

  72-byte limit: bcrypt only consumes the first 72 bytes of input and
       bcrypt>=5 raises on longer input instead of truncating. We truncate
       the UTF-8 bytes ourselves, identically in hash() and verify(), so
       the strength policy's 128-character ceiling never becomes a 500.

  Timing equalization: PasswordHasher keeps one dummy hash computed at
       construction. Login calls verify_dummy() when the email is unknown so
       both rejection paths cost one full bcrypt check and response time
       does not reveal whether an account exists [C1].

  Random passwords: secrets module only. random.* is not a CSPRNG.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field

import bcrypt

from core.errors import ValidationError

_BCRYPT_MAX_BYTES = 72

MIN_LENGTH = 8
MAX_LENGTH = 128

# Anything in this set satisfies the "special character" rule.
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

# Symbols used when generating passwords -- a subset of SPECIAL_CHARACTERS
# without quotes and slashes so generated values paste cleanly into shells.
_GENERATOR_SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

_LOWER_RE = re.compile(r"[a-z]")
_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"\d")
_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------


class PasswordHasher:
    """bcrypt hasher bound to one cost factor.

    Usage:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        stored = hasher.hash("StrongPass123!")
        hasher.verify("StrongPass123!", stored)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        self._dummy_hash = self.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        """Return a salted bcrypt hash. The cost and salt are embedded in the result."""
        if not password:
            raise ValidationError("Password cannot be empty")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Return True if password matches hashed. Never raises."""
        if not password or not hashed:
            return False
        try:
            return bcrypt.checkpw(_encode(password), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed or foreign hash string
            return False

    def verify_dummy(self, password: str) -> bool:
        """Spend one bcrypt check without a real hash. Always False."""
        self.verify(password or "x", self._dummy_hash)
        return False


# ---------------------------------------------------------------------------
# Strength policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PasswordStrength:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def check_password_strength(password: str | None) -> PasswordStrength:
    """Evaluate password against the policy. All rules are checked; errors accumulate in order."""
    if not password:
        return PasswordStrength(is_valid=False, errors=["Password is required"])

    errors: list[str] = []
    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    if len(password) > MAX_LENGTH:
        errors.append(f"Password must be less than {MAX_LENGTH} characters long")
    if not _LOWER_RE.search(password):
        errors.append("Password must contain at least one lowercase letter")
    if not _UPPER_RE.search(password):
        errors.append("Password must contain at least one uppercase letter")
    if not _DIGIT_RE.search(password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain at least one special character")

    return PasswordStrength(is_valid=not errors, errors=errors)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def generate_random_password(length: int = 12) -> str:
    """Generate a password with at least one lowercase, uppercase, digit, and symbol.

    The four guaranteed characters are shuffled into the rest so their
    positions are not predictable. Any length >= 8 passes
    check_password_strength().
    """
    if length < 4:
        raise ValueError("length must be at least 4 to include every character class")

    pools = (string.ascii_lowercase, string.ascii_uppercase, string.digits, _GENERATOR_SYMBOLS)
    alphabet = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools]
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(pools)))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
