"""
auth/models.py -- Domain dataclasses and enums for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores, services
and routes do the work; these types only own the domain shape.

Role and Permission are str-valued enums so their values serialize directly
into JWT claims and JSON columns ("admin", "read:users", ...). Permission
declaration order is significant: the ADMIN default set and every denial
message follow it.

Layer rule: no imports from api/, users/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    GUEST = "guest"


class Permission(str, Enum):
    READ_USERS = "read:users"
    WRITE_USERS = "write:users"
    DELETE_USERS = "delete:users"
    READ_PROFILE = "read:profile"
    WRITE_PROFILE = "write:profile"
    MANAGE_SYSTEM = "manage:system"


@dataclass
class User:
    """A stored account, including its password hash.

    Never leaves the auth/users layers as-is -- call to_public() first.
    permissions is fixed at creation and is not recomputed when role changes.
    """

    id: str
    email: str
    username: str
    password_hash: str
    role: Role
    permissions: list[Permission] = field(default_factory=list)
    is_active: bool = True
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            email=self.email,
            username=self.username,
            role=self.role,
            permissions=list(self.permissions),
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass
class PublicUser:
    """User minus password_hash. The only user shape returned across the boundary."""

    id: str
    email: str
    username: str
    role: Role
    permissions: list[Permission] = field(default_factory=list)
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""


@dataclass
class NewUser:
    """Write model for UserStore.create(). id and timestamps are assigned by the store."""

    email: str
    username: str
    password_hash: str
    role: Role
    permissions: list[Permission] = field(default_factory=list)
    is_active: bool = True


@dataclass(frozen=True)
class Claims:
    """Payload embedded in every issued token.

    iat/exp are None on the way into JWTSigner.sign() (the signer stamps them)
    and always set on the way out of JWTSigner.verify().
    """

    sub: str
    email: str
    username: str
    role: Role
    permissions: tuple[Permission, ...] = ()
    iat: datetime | None = None
    exp: datetime | None = None


@dataclass(frozen=True)
class Principal:
    """The authenticated identity resolved from a verified token."""

    id: str
    email: str
    username: str
    role: Role
    permissions: tuple[Permission, ...] = ()

    @classmethod
    def from_claims(cls, claims: Claims) -> Principal:
        return cls(
            id=claims.sub,
            email=claims.email,
            username=claims.username,
            role=claims.role,
            permissions=tuple(claims.permissions),
        )


@dataclass(frozen=True)
class UserSummary:
    """Narrow user view returned next to a token (no activity flag, no timestamps)."""

    id: str
    email: str
    username: str
    role: Role
    permissions: tuple[Permission, ...] = ()


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    user: UserSummary
