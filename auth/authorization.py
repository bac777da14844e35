"""
auth/authorization.py -- Role and permission checks, and the ordered pipeline.

Two predicates with deliberately different semantics:

  check_roles        ANY -- holding one of the required roles suffices.
  check_permissions  ALL -- every required permission must be held.

Each predicate has the shape (principal, required) -> AuthError | None:
None means allow, an AuthError instance means deny. An empty requirement
allows unconditionally, even with no principal at all -- the check is
skipped, not failed.

RouteAccess is the per-route descriptor: an ordered tuple of AccessRule
(predicate + requirement) pairs built once, when the route is registered.
authorize() walks the rules in declaration order and raises the first
denial; later rules and the route handler never run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from auth.errors import AuthError, ForbiddenPermission, ForbiddenRole, Unauthenticated
from auth.models import Permission, Principal, Role

logger = logging.getLogger("warden.auth")

Requirement = Union[tuple[Role, ...], tuple[Permission, ...]]
Check = Callable[[Union[Principal, None], Requirement], Union[AuthError, None]]


def check_roles(principal: Principal | None, required: Sequence[Role] | None) -> AuthError | None:
    if not required:
        return None
    if principal is None:
        return Unauthenticated()
    if any(principal.role == role for role in required):
        return None
    return ForbiddenRole(required=required, actual=principal.role)


def check_permissions(principal: Principal | None, required: Sequence[Permission] | None) -> AuthError | None:
    if not required:
        return None
    if principal is None:
        return Unauthenticated()
    held = set(principal.permissions or ())
    # Only the missing ones, in the order the route declared them.
    missing = [permission for permission in required if permission not in held]
    if missing:
        return ForbiddenPermission(missing=missing)
    return None


@dataclass(frozen=True)
class AccessRule:
    check: Check
    required: Requirement


@dataclass(frozen=True)
class RouteAccess:
    """Access requirements for one route, evaluated in rule order."""

    rules: tuple[AccessRule, ...] = ()

    @classmethod
    def of(
        cls,
        roles: Iterable[Role] | None = None,
        permissions: Iterable[Permission] | None = None,
    ) -> RouteAccess:
        """Declare a role rule followed by a permission rule. Omitted sets add no rule."""
        rules: list[AccessRule] = []
        if roles:
            rules.append(require_roles(*roles))
        if permissions:
            rules.append(require_permissions(*permissions))
        return cls(rules=tuple(rules))

    @classmethod
    def from_rules(cls, *rules: AccessRule) -> RouteAccess:
        return cls(rules=tuple(rules))

    @property
    def roles(self) -> tuple[Role, ...]:
        return tuple(r for rule in self.rules if rule.check is check_roles for r in rule.required)

    @property
    def permissions(self) -> tuple[Permission, ...]:
        return tuple(p for rule in self.rules if rule.check is check_permissions for p in rule.required)


def require_roles(*roles: Role) -> AccessRule:
    return AccessRule(check=check_roles, required=tuple(Role(r) for r in roles))


def require_permissions(*permissions: Permission) -> AccessRule:
    return AccessRule(check=check_permissions, required=tuple(Permission(p) for p in permissions))


PUBLIC = RouteAccess()


def evaluate(principal: Principal | None, access: RouteAccess) -> AuthError | None:
    """Return the first denial in rule order, or None if every rule allows."""
    for rule in access.rules:
        denial = rule.check(principal, rule.required)
        if denial is not None:
            return denial
    return None


def authorize(principal: Principal | None, access: RouteAccess) -> None:
    """Raise the first denial produced by access.rules.

    Raises:
        Unauthenticated: a non-empty rule ran without a principal.
        ForbiddenRole: the role rule denied.
        ForbiddenPermission: the permission rule denied.
    """
    denial = evaluate(principal, access)
    if denial is not None:
        logger.info(
            "Access denied (user_id=%s, code=%s)",
            principal.id if principal is not None else None,
            denial.code,
        )
        raise denial
