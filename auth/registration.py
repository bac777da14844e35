"""
auth/registration.py -- Self-service registration that logs the caller in.

Each step is a hard precondition for the next:
  1. hash the password at PASSWORD_HASH_COST
  2. derive permissions from the role policy, unless an explicit list is
     supplied (stored verbatim, no policy check)
  3. persist via the directory -- DuplicateEmail propagates
  4. issue a token through the same TokenIssuer the login route uses

The directory's duplicate-email check is read-then-write. Two concurrent
registrations with the same email can both pass it; the core does not guard
against that race.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from auth.interfaces import PasswordHasher, UserDirectory
from auth.models import IssuedToken, NewUser, Permission, Role
from auth.passwords import PASSWORD_HASH_COST
from auth.policy import default_permissions
from auth.tokens import TokenIssuer

logger = logging.getLogger("warden.auth")


class RegistrationFlow:
    def __init__(self, directory: UserDirectory, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self._directory = directory
        self._hasher = hasher
        self._issuer = issuer

    def register(
        self,
        email: str,
        username: str,
        password: str,
        role: Role = Role.USER,
        permissions: Sequence[Permission] | None = None,
    ) -> IssuedToken:
        role = Role(role)
        password_hash = self._hasher.hash(password, PASSWORD_HASH_COST)
        granted = list(permissions) if permissions is not None else default_permissions(role)

        created = self._directory.create(
            NewUser(
                email=email,
                username=username,
                password_hash=password_hash,
                role=role,
                permissions=granted,
            )
        )
        logger.info("Registered user %s (user_id=%s, role=%s)", email, created.id, role.value)
        return self._issuer.issue(created.to_public())
