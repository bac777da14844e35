"""
API request and response models for Warden REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Role and Permission are reused from auth.models: they are str enums, so
Pydantic validates and serializes them by value ("admin", "read:users").

Email fields use EmailStr (email-validator, no deliverability lookup). The
validated value is normalized, so the domain part is stored lowercased.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from auth.models import IssuedToken, Permission, Principal, PublicUser, Role

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# bcrypt ignores bytes past 72; keep passwords under that.
PASSWORD_MAX_LEN = 72

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.USER


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LEN)


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users (admin only).

    permissions, when given, is stored verbatim instead of the role's default set.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6, max_length=PASSWORD_MAX_LEN)
    role: Role
    permissions: Optional[list[Permission]] = None


class ProfilePatch(BaseModel):
    """Request body for PATCH /api/v1/users/profile. Role and permissions are not self-editable."""

    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=255)
    password: Optional[str] = Field(default=None, min_length=6, max_length=PASSWORD_MAX_LEN)


class UserPatch(ProfilePatch):
    """Request body for PATCH /api/v1/users/{id} (admin only).

    Changing role does not recompute permissions; send permissions explicitly
    to change them.
    """

    role: Optional[Role] = None
    permissions: Optional[list[Permission]] = None
    is_active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserSummaryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    username: str
    role: Role
    permissions: list[Permission]


class TokenResponse(BaseModel):
    """Returned by register, login and refresh -- one shape for all three."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummaryResponse

    @classmethod
    def from_issued(cls, issued: IssuedToken, expires_in: int) -> "TokenResponse":
        summary = issued.user
        return cls(
            access_token=issued.access_token,
            expires_in=expires_in,
            user=UserSummaryResponse(
                id=summary.id,
                email=summary.email,
                username=summary.username,
                role=summary.role,
                permissions=list(summary.permissions),
            ),
        )


class MeResponse(UserSummaryResponse):
    """Identity carried by the caller's token."""

    @classmethod
    def from_principal(cls, principal: Principal) -> "MeResponse":
        return cls(
            id=principal.id,
            email=principal.email,
            username=principal.username,
            role=principal.role,
            permissions=list(principal.permissions),
        )


class UserResponse(BaseModel):
    """Full public view of an account (no password hash)."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    username: str
    role: Role
    permissions: list[Permission]
    is_active: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            role=user.role,
            permissions=list(user.permissions),
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
