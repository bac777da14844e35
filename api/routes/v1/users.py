"""
api/routes/v1/users.py -- Account management REST endpoints.

Every route declares its access requirements as a RouteAccess descriptor
built here, at import time, and enforced by the guard() dependency before the
handler body runs. Role rules use ANY semantics, permission rules ALL.

Routes (roles / permissions):
  POST   /api/v1/users                  admin           / write:users
  GET    /api/v1/users                  admin, manager  / read:users
  GET    /api/v1/users/profile          any role        / read:profile
  PATCH  /api/v1/users/profile          any role        / write:profile
  GET    /api/v1/users/{id}             admin, manager  / read:users
  PATCH  /api/v1/users/{id}             admin           / write:users
  DELETE /api/v1/users/{id}             admin           / delete:users
  PATCH  /api/v1/users/{id}/deactivate  admin, manager  / write:users
  PATCH  /api/v1/users/{id}/activate    admin           / write:users

Route registration order matters: /users/profile must be registered before
/users/{user_id} or FastAPI captures "profile" as a path parameter.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response

from api.models import ProfilePatch, UserCreate, UserPatch, UserResponse
from auth.authorization import RouteAccess
from auth.dependencies import guard
from auth.models import Permission, Principal, Role
from users.service import UserService

router = APIRouter()

_CREATE_USER = RouteAccess.of(roles=[Role.ADMIN], permissions=[Permission.WRITE_USERS])
_READ_USERS = RouteAccess.of(roles=[Role.ADMIN, Role.MANAGER], permissions=[Permission.READ_USERS])
_READ_PROFILE = RouteAccess.of(permissions=[Permission.READ_PROFILE])
_WRITE_PROFILE = RouteAccess.of(permissions=[Permission.WRITE_PROFILE])
_UPDATE_USER = RouteAccess.of(roles=[Role.ADMIN], permissions=[Permission.WRITE_USERS])
_DELETE_USER = RouteAccess.of(roles=[Role.ADMIN], permissions=[Permission.DELETE_USERS])
_DEACTIVATE_USER = RouteAccess.of(roles=[Role.ADMIN, Role.MANAGER], permissions=[Permission.WRITE_USERS])
_ACTIVATE_USER = RouteAccess.of(roles=[Role.ADMIN], permissions=[Permission.WRITE_USERS])


def _service(request: Request) -> UserService:
    return request.app.state.user_service


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    _principal: Principal = Depends(guard(_CREATE_USER)),
) -> UserResponse:
    """Create an account without logging it in. 409 on duplicate email."""
    user = _service(request).create(
        body.email,
        body.username,
        body.password,
        role=body.role,
        permissions=body.permissions,
    )
    return UserResponse.from_public(user)


@router.get("/users", response_model=list[UserResponse])
def list_users(
    request: Request,
    _principal: Principal = Depends(guard(_READ_USERS)),
) -> list[UserResponse]:
    return [UserResponse.from_public(u) for u in _service(request).list_users()]


@router.get("/users/profile", response_model=UserResponse)
def get_profile(
    request: Request,
    principal: Principal = Depends(guard(_READ_PROFILE)),
) -> UserResponse:
    """Return the caller's own stored record."""
    return UserResponse.from_public(_service(request).get(principal.id))


@router.patch("/users/profile", response_model=UserResponse)
def update_profile(
    request: Request,
    body: ProfilePatch,
    principal: Principal = Depends(guard(_WRITE_PROFILE)),
) -> UserResponse:
    """Update the caller's email, username or password."""
    user = _service(request).update(principal.id, **body.model_dump(exclude_unset=True))
    return UserResponse.from_public(user)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    request: Request,
    user_id: uuid.UUID,
    _principal: Principal = Depends(guard(_READ_USERS)),
) -> UserResponse:
    return UserResponse.from_public(_service(request).get(str(user_id)))


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: uuid.UUID,
    body: UserPatch,
    _principal: Principal = Depends(guard(_UPDATE_USER)),
) -> UserResponse:
    """Update any account field. A role change leaves permissions as stored."""
    user = _service(request).update(str(user_id), **body.model_dump(exclude_unset=True))
    return UserResponse.from_public(user)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: uuid.UUID,
    _principal: Principal = Depends(guard(_DELETE_USER)),
) -> Response:
    """Hard-delete an account."""
    _service(request).remove(str(user_id))
    return Response(status_code=204)


@router.patch("/users/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    request: Request,
    user_id: uuid.UUID,
    _principal: Principal = Depends(guard(_DEACTIVATE_USER)),
) -> UserResponse:
    return UserResponse.from_public(_service(request).deactivate(str(user_id)))


@router.patch("/users/{user_id}/activate", response_model=UserResponse)
def activate_user(
    request: Request,
    user_id: uuid.UUID,
    _principal: Principal = Depends(guard(_ACTIVATE_USER)),
) -> UserResponse:
    return UserResponse.from_public(_service(request).activate(str(user_id)))
