"""
users/service.py -- Account management on top of UserStore.

Admin-driven create, lookups, profile/role updates, activation toggles and
hard delete. Every method returns PublicUser; password hashes never leave
this layer.

Permissions are derived from the role policy only when an account is
created. update() with a new role leaves the stored permissions untouched,
so role and permissions may diverge afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from auth.errors import DuplicateEmail, NotFound
from auth.interfaces import PasswordHasher
from auth.models import NewUser, Permission, PublicUser, Role
from auth.passwords import PASSWORD_HASH_COST
from auth.policy import default_permissions
from users.store import UserStore

logger = logging.getLogger("warden.users")


class UserService:
    def __init__(self, store: UserStore, hasher: PasswordHasher) -> None:
        self._store = store
        self._hasher = hasher

    def create(
        self,
        email: str,
        username: str,
        password: str,
        role: Role = Role.USER,
        permissions: Sequence[Permission] | None = None,
    ) -> PublicUser:
        """Create an account without issuing a token.

        Raises:
            DuplicateEmail: the email is already registered.
        """
        role = Role(role)
        created = self._store.create(
            NewUser(
                email=email,
                username=username,
                password_hash=self._hasher.hash(password, PASSWORD_HASH_COST),
                role=role,
                permissions=list(permissions) if permissions is not None else default_permissions(role),
            )
        )
        return created.to_public()

    def list_users(self) -> list[PublicUser]:
        return [u.to_public() for u in self._store.list_users()]

    def get(self, user_id: str) -> PublicUser:
        user = self._store.find_by_id(user_id)
        if user is None:
            raise NotFound(user_id)
        return user.to_public()

    def update(self, user_id: str, **changes) -> PublicUser:
        """Apply changes to an account.

        A plaintext "password" entry is hashed before it reaches the store.
        Unset (None) entries are ignored.

        Raises:
            NotFound: user_id does not exist.
            DuplicateEmail: the new email belongs to another account.
        """
        if self._store.find_by_id(user_id) is None:
            raise NotFound(user_id)
        fields = {k: v for k, v in changes.items() if v is not None}
        if "email" in fields:
            owner = self._store.find_by_email(fields["email"])
            if owner is not None and owner.id != user_id:
                raise DuplicateEmail()
        password = fields.pop("password", None)
        if password is not None:
            fields["password_hash"] = self._hasher.hash(password, PASSWORD_HASH_COST)
        return self._store.update(user_id, **fields).to_public()

    def remove(self, user_id: str) -> None:
        """Hard-delete an account.

        Raises:
            NotFound: user_id does not exist.
        """
        if not self._store.delete(user_id):
            raise NotFound(user_id)
        logger.info("Deleted user %s", user_id)

    def deactivate(self, user_id: str) -> PublicUser:
        """Mark an account inactive. Deactivating an inactive account is a no-op."""
        return self.update(user_id, is_active=False)

    def activate(self, user_id: str) -> PublicUser:
        return self.update(user_id, is_active=True)
