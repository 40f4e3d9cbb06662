"""
API request and response models for ProjectDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Every response uses the same envelope:
  success -- true on 2xx, false otherwise
  data    -- payload on success
  error   -- {code, message, details?} on failure

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Role, User

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Request models
#
# Only identity fields are trimmed. Passwords are hashed and compared
# exactly as sent; surrounding whitespace is part of the secret.
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Password strength is NOT checked here: the Auth Service reports every
    failed rule at once in error.details.errors, which a min_length
    constraint would pre-empt with a less useful message.
    """

    email: str = Field(pattern=_EMAIL_PATTERN, max_length=255)
    name: str = Field(min_length=2, max_length=100)
    password: str = Field(min_length=1, max_length=255)
    role: Role

    @field_validator("email", "name", mode="before")
    @classmethod
    def strip_identity(cls, value: Any) -> Any:
        return _strip(value)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return _strip(value)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. password_hash is never part of it."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: Role
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserData(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserResponse


class LoginData(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserResponse
    token: str


class UserEnvelope(BaseModel):
    """Response for register, me, and user lookup."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: UserData
    message: Optional[str] = None


class LoginEnvelope(BaseModel):
    """Response for POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: LoginData
    message: str = "Login successful"


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
