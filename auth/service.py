"""
auth/service.py -- Registration and login orchestration.

AuthService composes the three auth building blocks:
  - a UserRepository (auth/store.py in production, fakes in tests)
  - a PasswordHasher (auth/passwords.py)
  - a TokenService (auth/tokens.py)

Each operation is a short pipeline of checks evaluated in a fixed order;
the first failing check decides the error and later checks never run.
Validation happens before any side effect, so a rejected registration
never reaches the store.

Security:
  [C1] login() collapses "unknown email" and "wrong password" into one
       UnauthorizedError with one message, and runs bcrypt on both paths so
       the two are indistinguishable by content or timing. Do not make the
       error more specific.
  [M1] A duplicate email that slips past the pre-check (concurrent
       registration) surfaces from the store as DuplicateEmailError and is
       reported as the same ConflictError as the pre-check.

Threading: every method is synchronous and CPU-heavy (bcrypt). Route
handlers that call it are plain `def` so FastAPI runs them in its worker
thread pool instead of on the event loop.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from auth.models import AuthResult, DuplicateEmailError, NewUser, Role, TokenClaims, User, UserRepository
from auth.passwords import PasswordHasher, check_password_strength
from auth.tokens import TokenService
from core.config import Settings
from core.errors import (
    AppError,
    BusinessLogicError,
    ConflictError,
    TokenError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger("projectdesk.auth")

_DUPLICATE_EMAIL = "User with this email already exists"
_BAD_CREDENTIALS = "Invalid credentials"


class AuthService:
    def __init__(self, users: UserRepository, hasher: PasswordHasher, tokens: TokenService) -> None:
        self.users = users
        self.hasher = hasher
        self.tokens = tokens

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, data: NewUser) -> User:
        """Create a user account and return the stored record.

        Raises:
            ValidationError:    missing field, unknown role, or weak password.
            ConflictError:      email already registered.
            BusinessLogicError: hashing or persistence failed unexpectedly.
        """
        if not all(_present(v) for v in (data.email, data.name, data.password, data.role)):
            raise ValidationError("Email, password, name, and role are required")
        role = _parse_role(data.role)

        if self.users.find_by_email(data.email) is not None:
            raise ConflictError(_DUPLICATE_EMAIL)

        strength = check_password_strength(data.password)
        if not strength.is_valid:
            raise ValidationError("Password does not meet requirements", {"errors": list(strength.errors)})

        password_hash = self._hash(data.password)

        try:
            user = self.users.create(email=data.email, name=data.name, password_hash=password_hash, role=role)
        except DuplicateEmailError as exc:
            logger.info("Registration lost a race on an existing email")
            raise ConflictError(_DUPLICATE_EMAIL) from exc
        except AppError:
            raise
        except Exception as exc:
            logger.exception("User store failed during registration")
            raise BusinessLogicError("Failed to create user") from exc

        logger.info("Registered user %s (role=%s)", user.id, role.value)
        return user

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate by email and password; return the user and a new token.

        Unknown email and wrong password raise the identical UnauthorizedError [C1].
        """
        if not _present(email) or not _present(password):
            raise ValidationError("Email and password are required")

        user = self.users.find_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            self.hasher.verify_dummy(password)
            logger.warning("Login rejected: bad credentials")
            raise UnauthorizedError(_BAD_CREDENTIALS)

        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Login rejected: bad credentials")
            raise UnauthorizedError(_BAD_CREDENTIALS)

        token = self.generate_token(user)
        logger.info("User %s logged in", user.id)
        return AuthResult(user=user, token=token)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def verify_token(self, token: str) -> TokenClaims:
        """Verify a session token. TokenError propagates unchanged."""
        return self.tokens.verify(token)

    def generate_token(self, user: User) -> str:
        """Issue a token for an already-authenticated user."""
        try:
            return self.tokens.issue(user)
        except Exception as exc:
            logger.exception("Token issuance failed for user %s", user.id)
            raise BusinessLogicError("Failed to generate token") from exc

    def get_user(self, user_id: str) -> User:
        """Resolve a verified token subject to its stored user."""
        user = self.users.find_by_id(user_id)
        if user is None:
            raise TokenError("User not found")
        return user

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _hash(self, password: str) -> str:
        try:
            return self.hasher.hash(password)
        except ValidationError:
            raise
        except Exception as exc:
            logger.exception("Password hashing failed")
            raise BusinessLogicError("Failed to process password") from exc


def _present(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Invalid role", {"allowed": [r.value for r in Role]}) from None


def build_auth_service(settings: Settings, users: UserRepository) -> AuthService:
    """Wire an AuthService from Settings. Shared by the API lifespan and the CLI.

    TokenService validates the signing secret here, so a bad configuration
    fails at startup rather than on the first login.
    """
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenService(
        settings.secret_key,
        settings.token_expires_in,
        production=settings.is_production,
    )
    return AuthService(users, hasher, tokens)
