"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt]: passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

The cost factor is passed in by the caller (RegistrationFlow and UserService
use PASSWORD_HASH_COST) so tests can observe it through a fake hasher.

bcrypt is CPU-bound. Callers inside the ASGI app reach it only from plain
`def` route handlers, which FastAPI runs in its worker thread pool.
"""

from __future__ import annotations

import bcrypt

# Work factor for every stored password hash.
PASSWORD_HASH_COST = 10


class BcryptHasher:
    """PasswordHasher collaborator backed by the bcrypt library."""

    def hash(self, plain: str, cost: int = PASSWORD_HASH_COST) -> str:
        """Return a bcrypt hash of plain at the given cost.

        bcrypt silently ignores bytes past 72; the api/ layer caps password
        length well below that.
        """
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")

    def compare(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches hashed. A corrupt stored hash compares False."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
