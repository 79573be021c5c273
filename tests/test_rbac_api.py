"""User administration and role-based permission checks."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from halosuite.models import Permission, Role, User

Headers = Callable[[User], dict[str, str]]


@pytest.fixture
def admin(make_user: Callable[..., User], grant_role: Callable[..., Role]) -> User:
    user = make_user("Admin")
    grant_role(user, "users:*", "roles:*")
    return user


@pytest.fixture
def plain(make_user: Callable[..., User]) -> User:
    return make_user("Plain")


NEW_USER = {"email": "hire@example.com", "name": "New Hire", "password": "welcome-aboard"}


def test_creating_users_needs_permission(
    client: TestClient, plain: User, auth_headers: Headers
) -> None:
    response = client.post("/api/users", json=NEW_USER, headers=auth_headers(plain))
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "message": "Permission denied: requires 'users:create'",
    }


def test_wildcard_role_allows_user_admin(
    client: TestClient, admin: User, auth_headers: Headers
) -> None:
    created = client.post("/api/users", json=NEW_USER, headers=auth_headers(admin))
    assert created.status_code == 201
    user = created.json()["data"]
    assert user["username"] == "hire"
    assert "password" not in user

    suspended = client.patch(
        f"/api/users/{user['id']}/status",
        json={"status": "SUSPENDED"},
        headers=auth_headers(admin),
    )
    assert suspended.json()["data"]["status"] == "SUSPENDED"


def test_any_user_can_list_users(
    client: TestClient, plain: User, admin: User, auth_headers: Headers
) -> None:
    body = client.get("/api/users", params={"search": "adm"}, headers=auth_headers(plain)).json()
    assert [u["email"] for u in body["data"]] == ["admin@example.com"]
    assert body["meta"]["total"] == 1


def test_deleted_user_disappears(
    client: TestClient, admin: User, plain: User, auth_headers: Headers
) -> None:
    response = client.delete(f"/api/users/{plain.id}", headers=auth_headers(admin))
    assert response.status_code == 200

    assert client.get(f"/api/users/{plain.id}", headers=auth_headers(admin)).status_code == 404
    assert client.get("/api/auth/me", headers=auth_headers(plain)).status_code == 401


def test_batch_delete_never_includes_caller(
    client: TestClient, admin: User, plain: User, auth_headers: Headers
) -> None:
    response = client.post(
        "/api/users/batch-delete",
        json={"ids": [admin.id, plain.id]},
        headers=auth_headers(admin),
    )
    assert response.json()["data"] == {"deletedCount": 1}
    assert client.get("/api/auth/me", headers=auth_headers(admin)).status_code == 200


def test_batch_delete_requires_ids(
    client: TestClient, admin: User, auth_headers: Headers
) -> None:
    headers = auth_headers(admin)
    response = client.post("/api/users/batch-delete", json={"ids": []}, headers=headers)
    assert response.status_code == 400


def test_role_permissions_are_replaced(
    client: TestClient, db: Session, admin: User, auth_headers: Headers
) -> None:
    headers = auth_headers(admin)
    # admin holds users:* and roles:* only
    denied = client.post("/api/permissions", json={"action": "files:view"}, headers=headers)
    assert denied.status_code == 403

    permissions = [
        Permission(action=action, resource=action.split(":")[0])
        for action in ("documents:view", "documents:edit", "files:view")
    ]
    db.add_all(permissions)
    db.commit()
    ids = [permission.id for permission in permissions]

    created = client.post(
        "/api/roles",
        json={"name": "editor", "permissionIds": ids[:2]},
        headers=headers,
    ).json()["data"]
    assert created["label"] == "editor"
    assert sorted(p["action"] for p in created["permissions"]) == [
        "documents:edit",
        "documents:view",
    ]

    replaced = client.put(
        f"/api/roles/{created['id']}/permissions",
        json={"permissionIds": ids[1:]},
        headers=headers,
    ).json()["data"]
    actions = sorted(p["action"] for p in replaced["permissions"])
    assert actions == ["documents:edit", "files:view"]


def test_unknown_permission_id_is_rejected(
    client: TestClient, admin: User, auth_headers: Headers
) -> None:
    response = client.post(
        "/api/roles",
        json={"name": "ghost", "permissionIds": ["missing"]},
        headers=auth_headers(admin),
    )
    assert response.status_code == 404


def test_duplicate_role_name_conflicts(
    client: TestClient, admin: User, auth_headers: Headers
) -> None:
    response = client.post("/api/roles", json={"name": "admin"}, headers=auth_headers(admin))
    assert response.status_code == 409


def test_role_user_count(client: TestClient, admin: User, auth_headers: Headers) -> None:
    roles = client.get("/api/roles", headers=auth_headers(admin)).json()["data"]
    assert [(r["name"], r["userCount"]) for r in roles] == [("admin", 1)]
