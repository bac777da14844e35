#!/usr/bin/env python3
"""
Warden -- account administration CLI.

Usage:
  python main.py seed
  python main.py create-user alice@example.com alice 's3cret-pw' --role manager
  python main.py create-user bob@example.com bob 's3cret-pw' --permissions read:profile

The HTTP API is served separately:  uvicorn api.main:app

Environment variables (see core/config.py):
  DATABASE_URL            SQLAlchemy URL of the user store
  SEED_ADMIN_PASSWORD     Password for admin@example.com created by `seed`
  SEED_MANAGER_PASSWORD   Password for manager@example.com created by `seed`
"""

import argparse
import sys

from auth.errors import DuplicateEmail
from auth.models import Permission, Role
from auth.passwords import BcryptHasher
from core.config import get_settings
from users.service import UserService
from users.store import UserStore

# (email, username, role, settings attribute holding the password)
_SEED_ACCOUNTS = (
    ("admin@example.com", "admin", Role.ADMIN, "seed_admin_password"),
    ("manager@example.com", "manager", Role.MANAGER, "seed_manager_password"),
)


def seed(store: UserStore, service: UserService) -> int:
    """Create the admin and manager accounts if their emails are not taken yet.

    Accounts whose seed password is not configured are skipped with a warning.
    Returns the number of accounts created.
    """
    settings = get_settings()
    created = 0
    for email, username, role, password_attr in _SEED_ACCOUNTS:
        if store.find_by_email(email) is not None:
            print(f"  {email} already exists, skipping.")
            continue
        password = getattr(settings, password_attr)
        if not password:
            print(f"  [!] {password_attr.upper()} is not set, skipping {email}.")
            continue
        service.create(email, username, password, role=role)
        print(f"  Created {role.value} user {email}.")
        created += 1
    print(f"Seeding completed ({created} created).")
    return created


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="warden",
        description="Warden account administration.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("seed", help="Create the default admin and manager accounts")

    create = sub.add_parser("create-user", help="Create a single account")
    create.add_argument("email")
    create.add_argument("username")
    create.add_argument("password")
    create.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.USER.value,
        help="Account role (default: user)",
    )
    create.add_argument(
        "--permissions",
        nargs="*",
        choices=[p.value for p in Permission],
        default=None,
        metavar="PERMISSION",
        help="Explicit permission list, stored instead of the role's default set",
    )
    args = parser.parse_args(argv)

    store = UserStore(get_settings().database_url)
    service = UserService(store, BcryptHasher())
    try:
        if args.command == "seed":
            seed(store, service)
            return 0

        if len(args.password) < 6:
            print("Password must be at least 6 characters.", file=sys.stderr)
            return 1
        permissions = [Permission(p) for p in args.permissions] if args.permissions is not None else None
        try:
            user = service.create(args.email, args.username, args.password, role=Role(args.role), permissions=permissions)
        except DuplicateEmail:
            print(f"User '{args.email}' already exists.", file=sys.stderr)
            return 1
        print(f"Created user '{user.email}' (id={user.id}) with role '{user.role.value}'.")
        return 0
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
