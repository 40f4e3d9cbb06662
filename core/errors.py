"""
core/errors.py -- Typed error taxonomy shared by auth/ and api/.

Every error the auth core raises on purpose is an AppError subclass. Each
class carries a stable machine-readable code and the HTTP status the API
layer maps it to, so the exception handler in api/main.py needs no
per-class branching.

Messages on these errors are safe to show to callers. Internal failures
(bcrypt errors, JWT signing errors, database driver errors) are logged
where they happen and re-raised as BusinessLogicError with a generic
message -- the original exception text never reaches the response body.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Return the error payload used inside the API error envelope."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """Malformed or missing input. Caller's fault."""

    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(AppError):
    """Bad credentials. The message is deliberately generic."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    """A unique key (e.g. user email) is already taken."""

    status_code = 409
    code = "CONFLICT"


class TokenError(AppError):
    """Missing, malformed, tampered, or expired session token."""

    status_code = 401
    code = "TOKEN_ERROR"

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class BusinessLogicError(AppError):
    """Unexpected failure during an otherwise-valid operation."""

    status_code = 500
    code = "BUSINESS_LOGIC_ERROR"


class ConfigurationError(AppError):
    """Invalid startup configuration. Raised at construction, never per request."""

    status_code = 500
    code = "CONFIGURATION_ERROR"
