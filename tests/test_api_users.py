"""
tests/test_api_users.py -- Integration tests for /api/v1/users routes.

Each route's role and permission requirements are enforced by guard()
before the handler runs, so these tests double as coverage for the
dependency wiring: 401 without a token, 403 with the wrong role or a
missing permission, and the handler's own 404/409 once access is granted.

Fixtures used (from conftest.py):
  - api_client: (client, tokens, user_ids) -- admin, manager, user and guest
    accounts with their role's default permissions.
"""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

ApiClient = tuple[TestClient, dict[str, str], dict[str, str]]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create(client: TestClient, admin_token: str, email: str, username: str, **extra):
    body = {"email": email, "username": username, "password": "password123", "role": "user", **extra}
    return client.post("/api/v1/users", json=body, headers=_auth(admin_token))


class TestListUsers:
    def test_admin_can_list(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.get("/api/v1/users", headers=_auth(tokens["admin"]))
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) >= 4
        assert all("password_hash" not in u for u in data)

    def test_manager_can_list(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        assert client.get("/api/v1/users", headers=_auth(tokens["manager"])).status_code == 200

    def test_user_denied_by_role(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.get("/api/v1/users", headers=_auth(tokens["user"]))
        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["code"] == "forbidden_role"
        assert error["message"] == "Access denied. Required roles: admin, manager. Your role: user"

    def test_no_token(self, api_client: ApiClient) -> None:
        client, _, _ = api_client
        resp = client.get("/api/v1/users")
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_tampered_token(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        header, payload, _signature = tokens["admin"].split(".")
        forged = f"{header}.{payload}.not-the-signature"
        assert client.get("/api/v1/users", headers=_auth(forged)).status_code == 401


class TestProfile:
    def test_user_gets_own_profile(self, api_client: ApiClient) -> None:
        client, tokens, user_ids = api_client
        resp = client.get("/api/v1/users/profile", headers=_auth(tokens["user"]))
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == user_ids["user"]
        assert data["email"] == "user@example.com"
        assert "password_hash" not in data

    def test_guest_lacks_read_profile(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.get("/api/v1/users/profile", headers=_auth(tokens["guest"]))
        assert resp.status_code == 403
        error = resp.json()["error"]
        assert error["code"] == "forbidden_permission"
        assert error["message"] == "Access denied. Missing permissions: read:profile"

    def test_profile_no_token(self, api_client: ApiClient) -> None:
        client, _, _ = api_client
        assert client.get("/api/v1/users/profile").status_code == 401

    def test_user_updates_own_profile(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.patch(
            "/api/v1/users/profile",
            json={"username": "updateduser"},
            headers=_auth(tokens["user"]),
        )
        assert resp.status_code == 200
        assert resp.json()["username"] == "updateduser"

    def test_profile_cannot_change_role(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.patch(
            "/api/v1/users/profile",
            json={"role": "admin"},
            headers=_auth(tokens["user"]),
        )
        assert resp.status_code == 400

    def test_profile_rejects_invalid_email(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.patch(
            "/api/v1/users/profile",
            json={"email": "a@b..c"},
            headers=_auth(tokens["user"]),
        )
        assert resp.status_code == 400

    def test_update_profile_no_token(self, api_client: ApiClient) -> None:
        client, _, _ = api_client
        resp = client.patch("/api/v1/users/profile", json={"username": "nobody"})
        assert resp.status_code == 401


class TestCreateUser:
    def test_admin_creates_user(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = _create(client, tokens["admin"], "created@example.com", "createduser", role="manager")
        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "created@example.com"
        assert data["role"] == "manager"
        assert data["permissions"] == ["read:users", "write:users", "read:profile", "write:profile"]
        assert data["is_active"] is True

    def test_explicit_permissions_stored_verbatim(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = _create(
            client,
            tokens["admin"],
            "custom@example.com",
            "customperms",
            role="guest",
            permissions=["manage:system"],
        )
        assert resp.status_code == 201
        assert resp.json()["permissions"] == ["manage:system"]

    def test_manager_denied(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = _create(client, tokens["manager"], "bymgr@example.com", "bymgr")
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Access denied. Required roles: admin. Your role: manager"

    def test_user_denied(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        assert _create(client, tokens["user"], "byuser@example.com", "byuser").status_code == 403

    def test_duplicate_email(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = _create(client, tokens["admin"], "admin@example.com", "anotheradmin")
        assert resp.status_code == 409

    def test_role_is_required(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.post(
            "/api/v1/users",
            json={"email": "norole@example.com", "username": "norole", "password": "password123"},
            headers=_auth(tokens["admin"]),
        )
        assert resp.status_code == 400


class TestUserById:
    def test_get_user(self, api_client: ApiClient) -> None:
        client, tokens, user_ids = api_client
        resp = client.get(f"/api/v1/users/{user_ids['guest']}", headers=_auth(tokens["manager"]))
        assert resp.status_code == 200
        assert resp.json()["role"] == "guest"

    def test_get_unknown_user(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        missing = uuid.uuid4()
        resp = client.get(f"/api/v1/users/{missing}", headers=_auth(tokens["admin"]))
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == f"User with ID {missing} not found"

    def test_non_uuid_id_rejected(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        assert client.get("/api/v1/users/not-a-uuid", headers=_auth(tokens["admin"])).status_code == 400

    def test_admin_role_change_keeps_permissions(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        created = _create(client, tokens["admin"], "rolechange@example.com", "rolechange").json()
        resp = client.patch(
            f"/api/v1/users/{created['id']}",
            json={"role": "admin"},
            headers=_auth(tokens["admin"]),
        )
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"
        assert resp.json()["permissions"] == ["read:profile", "write:profile"]

    def test_manager_cannot_patch_user(self, api_client: ApiClient) -> None:
        client, tokens, user_ids = api_client
        resp = client.patch(
            f"/api/v1/users/{user_ids['guest']}",
            json={"username": "renamedguest"},
            headers=_auth(tokens["manager"]),
        )
        assert resp.status_code == 403


class TestActivation:
    def test_manager_deactivates_twice(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        created = _create(client, tokens["admin"], "deact@example.com", "deactme").json()
        for _ in range(2):
            resp = client.patch(f"/api/v1/users/{created['id']}/deactivate", headers=_auth(tokens["manager"]))
            assert resp.status_code == 200
            assert resp.json()["is_active"] is False

    def test_only_admin_activates(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        created = _create(client, tokens["admin"], "react@example.com", "reactme").json()
        path = f"/api/v1/users/{created['id']}/activate"
        assert client.patch(path, headers=_auth(tokens["manager"])).status_code == 403
        resp = client.patch(path, headers=_auth(tokens["admin"]))
        assert resp.status_code == 200
        assert resp.json()["is_active"] is True


class TestDeleteUser:
    def test_admin_deletes_user(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        created = _create(client, tokens["admin"], "delete@example.com", "deleteme").json()
        resp = client.delete(f"/api/v1/users/{created['id']}", headers=_auth(tokens["admin"]))
        assert resp.status_code == 204
        assert client.get(f"/api/v1/users/{created['id']}", headers=_auth(tokens["admin"])).status_code == 404

    def test_delete_unknown_user(self, api_client: ApiClient) -> None:
        client, tokens, _ = api_client
        resp = client.delete(f"/api/v1/users/{uuid.uuid4()}", headers=_auth(tokens["admin"]))
        assert resp.status_code == 404

    def test_manager_denied(self, api_client: ApiClient) -> None:
        client, tokens, user_ids = api_client
        resp = client.delete(f"/api/v1/users/{user_ids['guest']}", headers=_auth(tokens["manager"]))
        assert resp.status_code == 403

    def test_user_denied(self, api_client: ApiClient) -> None:
        client, tokens, user_ids = api_client
        resp = client.delete(f"/api/v1/users/{user_ids['guest']}", headers=_auth(tokens["user"]))
        assert resp.status_code == 403
