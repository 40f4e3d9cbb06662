"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer token is read from the Authorization header, verified by the
AuthService held on app.state, and resolved to the stored user. Failures
raise TokenError; the AppError handler in api/main.py turns that into a 401
with the standard error envelope.

require_role() is the only authorization primitive: a role allow-list on
top of get_current_user(). There is no permission model beyond it.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from auth.models import Role, User
from auth.service import AuthService
from auth.tokens import extract_bearer_token
from core.errors import ForbiddenError, TokenError


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_current_user(request: Request) -> User:
    """Require a valid bearer token. Raises TokenError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise TokenError("Authorization token is required")
    service = get_auth_service(request)
    claims = service.verify_token(token)
    return service.get_user(claims.subject_id)


def require_role(*roles: Role) -> Callable[[Request], User]:
    """Build a dependency that admits only users whose role is in roles.

    Raises TokenError (401) if unauthenticated, ForbiddenError (403) otherwise.
    """
    allowed = {Role(r) for r in roles}

    def dependency(request: Request) -> User:
        user = get_current_user(request)
        if user.role not in allowed:
            names = ", ".join(sorted(r.value for r in allowed))
            raise ForbiddenError(f"Access denied. Required roles: {names}")
        return user

    return dependency
