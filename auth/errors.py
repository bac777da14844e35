"""
auth/errors.py -- Error kinds emitted by the auth core.

Every error carries a machine-readable code and the HTTP status the api/ layer
should map it to. The core itself never touches HTTP; api/main.py owns the
translation via a single exception handler.

No error message or attribute ever includes password plaintext or hash
material.
"""

from __future__ import annotations

from collections.abc import Sequence

from auth.models import Permission, Role


class AuthError(Exception):
    code = "auth_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidCredentials(AuthError):
    """Uniform login failure -- unknown email and wrong password look identical."""

    code = "invalid_credentials"
    status_code = 401

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class Unauthenticated(AuthError):
    code = "unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(message)


class TokenError(Unauthenticated):
    """A bearer token failed verification.

    reason is one of "expired", "invalid_signature", "malformed".
    """

    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    MALFORMED = "malformed"

    def __init__(self, reason: str) -> None:
        super().__init__("Invalid or expired token.")
        self.reason = reason


class ForbiddenRole(AuthError):
    code = "forbidden_role"
    status_code = 403

    def __init__(self, required: Sequence[Role], actual: Role) -> None:
        self.required = tuple(required)
        self.actual = actual
        names = ", ".join(Role(r).value for r in self.required)
        super().__init__(f"Access denied. Required roles: {names}. Your role: {Role(actual).value}")


class ForbiddenPermission(AuthError):
    code = "forbidden_permission"
    status_code = 403

    def __init__(self, missing: Sequence[Permission]) -> None:
        self.missing = tuple(missing)
        names = ", ".join(Permission(p).value for p in self.missing)
        super().__init__(f"Access denied. Missing permissions: {names}")


class DuplicateEmail(AuthError):
    code = "duplicate_email"
    status_code = 409

    def __init__(self, message: str = "User with this email already exists.") -> None:
        super().__init__(message)


class NotFound(AuthError):
    code = "not_found"
    status_code = 404

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User with ID {user_id} not found")
        self.user_id = user_id
