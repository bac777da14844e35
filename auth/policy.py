"""
auth/policy.py -- Default permission set per role.

Pure lookup, no I/O. RegistrationFlow and UserService call default_permissions()
once, at creation time; nothing recomputes a user's permissions afterwards.
"""

from __future__ import annotations

from auth.models import Permission, Role

_ROLE_PERMISSIONS: dict[Role, tuple[Permission, ...]] = {
    Role.ADMIN: tuple(Permission),
    Role.MANAGER: (
        Permission.READ_USERS,
        Permission.WRITE_USERS,
        Permission.READ_PROFILE,
        Permission.WRITE_PROFILE,
    ),
    Role.USER: (
        Permission.READ_PROFILE,
        Permission.WRITE_PROFILE,
    ),
    Role.GUEST: (),
}


def default_permissions(role: Role) -> list[Permission]:
    """Return a fresh list of the default permissions for role, in declaration order."""
    return list(_ROLE_PERMISSIONS[Role(role)])
