"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/register        -- create an account; 201
  POST /api/v1/auth/login           -- password login; returns user + bearer token
  GET  /api/v1/auth/me              -- current user (requires bearer token)
  GET  /api/v1/auth/users/{id}      -- look up a user (admin or manager)

Security:
  [H2] register and login sit behind the "auth" rate limit preset
       (5 requests / 15 minutes per client), wired in api/main.py.
  [C1] Login failures use one generic message; AuthService guarantees it.
  [M5] Cache-Control: no-store on login responses.

Handlers are plain `def`, not `async def`. They call into bcrypt, which is
CPU-bound; FastAPI runs sync handlers in its thread pool so a slow hash
never blocks other requests on the event loop.

Errors are raised as core.errors.AppError subclasses and rendered by the
handler in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import LoginData, LoginEnvelope, LoginRequest, RegisterRequest, UserData, UserEnvelope, UserResponse
from auth.dependencies import get_auth_service, get_current_user, require_role
from auth.models import NewUser, Role, User
from auth.service import AuthService
from core.errors import NotFoundError

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=UserEnvelope, status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)) -> UserEnvelope:
    """Register a new account. The password is hashed before storage and never returned."""
    user = service.register(
        NewUser(email=body.email, name=body.name, password=body.password, role=body.role.value)
    )
    return UserEnvelope(
        data=UserData(user=UserResponse.from_user(user)),
        message="User registered successfully",
    )


@router.post("/auth/login", response_model=LoginEnvelope)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Authenticate with email and password; return the user and a bearer token."""
    result = service.login(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginEnvelope(
            data=LoginData(user=UserResponse.from_user(result.user), token=result.token),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    """Return the user identified by the bearer token."""
    return UserEnvelope(data=UserData(user=UserResponse.from_user(current_user)))


@router.get("/auth/users/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    service: AuthService = Depends(get_auth_service),
    _caller: User = Depends(require_role(Role.admin, Role.manager)),
) -> UserEnvelope:
    """Look up a user by id. Admin or manager only."""
    user = service.users.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User")
    return UserEnvelope(data=UserData(user=UserResponse.from_user(user)))
