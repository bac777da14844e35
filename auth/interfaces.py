"""
auth/interfaces.py -- Collaborator contracts consumed by the auth core.

The core depends only on these shapes. users/store.py (UserStore),
auth/passwords.py (BcryptHasher) and auth/tokens.py (JWTSigner) are the
production implementations; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import Claims, NewUser, User


class UserDirectory(Protocol):
    def find_by_email(self, email: str) -> User | None:
        """Exact-match lookup. Returns None if absent."""
        ...

    def find_by_id(self, user_id: str) -> User | None: ...

    def create(self, new_user: NewUser) -> User:
        """Persist a new user.

        Raises:
            DuplicateEmail: a user with new_user.email already exists.
        """
        ...

    def update(self, user_id: str, **patch) -> User:
        """Apply patch and return the updated record.

        Raises:
            NotFound: user_id does not exist.
        """
        ...


class PasswordHasher(Protocol):
    def hash(self, plain: str, cost: int) -> str: ...

    def compare(self, plain: str, hashed: str) -> bool: ...


class Signer(Protocol):
    def sign(self, claims: Claims) -> str: ...

    def verify(self, token: str) -> Claims:
        """Return the verified claims.

        Raises:
            TokenError: reason is "expired", "invalid_signature" or "malformed".
        """
        ...
