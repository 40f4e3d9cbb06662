"""
auth/models.py -- Domain dataclasses and the user-store contract.

Pattern: Data class (pure data container, zero logic). Stores and services
do the work; these types only own the domain shape.

UserRepository is the collaborator contract the Auth Service depends on.
auth/store.py implements it over SQLAlchemy; tests substitute in-memory fakes.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class Role(str, Enum):
    admin = "admin"
    manager = "manager"
    developer = "developer"


@dataclass
class User:
    """A stored user identity.

    password_hash is the bcrypt string, never the plaintext. The API layer
    maps User to a response model that omits it.
    """

    id: str
    email: str
    name: str
    password_hash: str
    role: Role
    created_at: str = ""
    updated_at: str = ""


@dataclass
class NewUser:
    """Registration input, before hashing. password is plaintext here."""

    email: str
    name: str
    password: str
    role: str


@dataclass(frozen=True)
class TokenClaims:
    """Identity recovered from a verified session token.

    issued_at / expires_at are epoch seconds (the JWT iat / exp claims).
    """

    subject_id: str
    email: str
    role: str
    issued_at: int
    expires_at: int


@dataclass
class AuthResult:
    """Successful login: the user record plus a freshly issued token."""

    user: User
    token: str


class DuplicateEmailError(Exception):
    """Raised by a UserRepository when create() hits the unique email constraint."""


class UserRepository(Protocol):
    def find_by_email(self, email: str) -> Optional[User]: ...

    def find_by_id(self, user_id: str) -> Optional[User]: ...

    def create(self, *, email: str, name: str, password_hash: str, role: Role) -> User: ...
