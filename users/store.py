"""
users/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper. UserStore is the repository and the
UserDirectory collaborator of the auth core; _row_to_user is the mapper.
Route and service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  email -- checked explicitly in create() before the INSERT, so a duplicate
      raises the structured DuplicateEmail. This is read-then-write; the
      UNIQUE column is the backstop for a concurrent race and surfaces as
      sqlalchemy.exc.IntegrityError.
  username -- UNIQUE column only. A duplicate username is NOT translated into
      a structured conflict: IntegrityError propagates to the caller.

DB path: users/warden_users.db by default (see core.config).

Layer rule: imports auth.models / auth.errors only; no imports from api/.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.errors import DuplicateEmail, NotFound
from auth.models import NewUser, Permission, Role, User

logger = logging.getLogger("warden.users")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4
    Column("email", String(255), nullable=False, unique=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default="user"),
    Column("permissions", Text, nullable=False, server_default="[]"),  # JSON array of Permission values
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns update() may touch. Anything else is a programming error.
_UPDATABLE_FIELDS = frozenset({"email", "username", "password_hash", "role", "permissions", "is_active"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user = store.create(NewUser(email="a@example.com", username="alice", ...))
        store.find_by_email("a@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by creation time."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at, _users.c.email)).fetchall()
        return [_row_to_user(r) for r in rows]

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, new_user: NewUser) -> User:
        """Insert a new user and return the stored record.

        Raises:
            DuplicateEmail: a user with this email already exists.
            sqlalchemy.exc.IntegrityError: the username is taken (or an email
                race slipped past the pre-check).
        """
        if self.find_by_email(new_user.email) is not None:
            raise DuplicateEmail()

        user_id = str(uuid.uuid4())
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    email=new_user.email,
                    username=new_user.username,
                    password_hash=new_user.password_hash,
                    role=Role(new_user.role).value,
                    permissions=_dump_permissions(new_user.permissions),
                    is_active=1 if new_user.is_active else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        logger.info("Created user record %s", user_id)
        return self._get_or_raise(user_id)

    def update(self, user_id: str, **fields) -> User:
        """Update mutable fields and return the stored record.

        Accepted fields: email, username, password_hash, role, permissions,
        is_active. Changing role does not touch permissions.

        Raises:
            NotFound: user_id does not exist.
            ValueError: an unknown field was passed.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")

        values = dict(fields)
        if "role" in values:
            values["role"] = Role(values["role"]).value
        if "permissions" in values:
            values["permissions"] = _dump_permissions(values["permissions"])
        if "is_active" in values:
            values["is_active"] = 1 if values["is_active"] else 0
        values["updated_at"] = _now_iso()

        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        if result.rowcount == 0:
            raise NotFound(user_id)
        return self._get_or_raise(user_id)

    def delete(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()

    def _get_or_raise(self, user_id: str) -> User:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFound(user_id)
        return user


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _dump_permissions(permissions) -> str:
    return json.dumps([Permission(p).value for p in permissions])


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        username=row.username,
        password_hash=row.password_hash,
        role=Role(row.role),
        permissions=[Permission(p) for p in json.loads(row.permissions or "[]")],
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
