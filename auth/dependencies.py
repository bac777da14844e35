"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and access control.

Bearer tokens only: Authorization: Bearer <token>. The signer lives on
app.state (wired once in the api/main.py lifespan).

try_get_principal() is the soft variant (returns None on any failure).
get_current_principal() wraps it and raises Unauthenticated.
guard(access) builds the per-route dependency that runs the authorization
pipeline: principal resolution -> role rule -> permission rule. The route
handler only runs if guard() returns.

A missing, malformed, badly signed or expired token all resolve to "no
principal"; the first non-empty rule then fails with Unauthenticated. The
reason is logged at debug level and never returned to the client.

auth/dependencies.py may import from fastapi (Request) because this module
is part of the FastAPI dependency injection system. Errors are raised as
AuthError; api/main.py maps them to HTTP responses.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Request

from auth.authorization import RouteAccess, authorize
from auth.errors import TokenError, Unauthenticated
from auth.models import Principal

logger = logging.getLogger("warden.auth")


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_principal(request: Request) -> Principal | None:
    """Resolve the request's principal from its bearer token. Never raises for bad tokens."""
    token = _bearer_token(request)
    if token is None:
        return None
    try:
        claims = request.app.state.signer.verify(token)
    except TokenError as exc:
        logger.debug("Rejected bearer token (reason=%s)", exc.reason)
        return None
    return Principal.from_claims(claims)


def get_current_principal(request: Request) -> Principal:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/auth/me")
        def me(principal: Principal = Depends(get_current_principal)): ...
    """
    principal = try_get_principal(request)
    if principal is None:
        raise Unauthenticated()
    return principal


def guard(access: RouteAccess) -> Callable[[Request], Principal | None]:
    """Build the dependency enforcing access for one route.

    Use as a FastAPI dependency:
        ADMIN_WRITE = RouteAccess.of(roles=[Role.ADMIN], permissions=[Permission.WRITE_USERS])

        @router.post("/users")
        def create(principal: Principal = Depends(guard(ADMIN_WRITE))): ...
    """

    def dependency(request: Request) -> Principal | None:
        principal = try_get_principal(request)
        authorize(principal, access)
        return principal

    return dependency
