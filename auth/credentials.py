"""
auth/credentials.py -- Email/password verification with timing equalization.

validate() returns the PublicUser on success and None on any failure. Unknown
email and wrong password produce the same None, and the hasher runs in both
cases: against the stored hash when the user exists, against a dummy hash
when it does not [C1]. Response time therefore does not reveal whether an
email is registered.

Only collaborator faults (e.g. a database error) propagate as exceptions.
"""

from __future__ import annotations

import logging

from auth.errors import InvalidCredentials
from auth.interfaces import PasswordHasher, UserDirectory
from auth.models import PublicUser
from auth.passwords import PASSWORD_HASH_COST

logger = logging.getLogger("warden.auth")


class CredentialValidator:
    def __init__(self, directory: UserDirectory, hasher: PasswordHasher) -> None:
        self._directory = directory
        self._hasher = hasher
        # Computed once so the first failed login is not measurably slower.
        self._dummy_hash = hasher.hash("warden_timing_dummy", PASSWORD_HASH_COST)

    def validate(self, email: str, password: str) -> PublicUser | None:
        """Return the matching PublicUser, or None for unknown email or wrong password."""
        user = self._directory.find_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return before running the hasher [C1]
            self._hasher.compare(password, self._dummy_hash)
            return None
        if not self._hasher.compare(password, user.password_hash):
            return None
        return user.to_public()

    def authenticate(self, email: str, password: str) -> PublicUser:
        """Raising variant of validate() for the login route.

        Raises:
            InvalidCredentials: on either failure cause; the two are not distinguished.
        """
        user = self.validate(email, password)
        if user is None:
            logger.info("Login failed for %s", email)
            raise InvalidCredentials()
        logger.info("Login succeeded for %s (user_id=%s)", email, user.id)
        return user
