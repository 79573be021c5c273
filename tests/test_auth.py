"""Registration, login, token rotation, logout and password reset."""

from collections.abc import Callable
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from halosuite.models import PasswordResetToken, RefreshToken, User, utcnow
from halosuite.services.password_reset_service import (
    ExpiredTokenError,
    InvalidTokenError,
    PasswordResetService,
    UsedTokenError,
)

PASSWORD = "password123"  # set by the make_user fixture


def login(client: TestClient, email: str, password: str = PASSWORD) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_register_signs_in(client: TestClient) -> None:
    response = client.post(
        "/api/auth/register",
        json={"email": "New.User@Example.com", "name": "New User", "password": "longenough"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "new.user@example.com"
    assert body["data"]["accessToken"]
    assert body["data"]["refreshToken"]


def test_register_duplicate_email_conflicts(
    client: TestClient, make_user: Callable[..., User]
) -> None:
    make_user("Taken")
    response = client.post(
        "/api/auth/register",
        json={"email": "taken@example.com", "name": "Again", "password": "longenough"},
    )
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_register_short_password_is_a_validation_error(client: TestClient) -> None:
    response = client.post(
        "/api/auth/register",
        json={"email": "short@example.com", "name": "Short", "password": "123"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert any(error["field"].endswith("password") for error in body["data"])


def test_login_and_me(client: TestClient, make_user: Callable[..., User]) -> None:
    make_user("Dana")
    tokens = login(client, "dana@example.com")

    response = client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {tokens['accessToken']}"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "dana@example.com"
    assert response.json()["data"]["permissions"] == []


def test_me_lists_role_permissions(
    client: TestClient,
    make_user: Callable[..., User],
    grant_role: Callable[..., object],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    user = make_user("Admin")
    grant_role(user, "users:*", "roles:view")

    data = client.get("/api/auth/me", headers=auth_headers(user)).json()["data"]

    assert data["permissions"] == ["roles:view", "users:*"]
    assert data["roles"][0]["name"] == "admin"


def test_login_wrong_password(client: TestClient, make_user: Callable[..., User]) -> None:
    make_user("Erin")
    response = client.post(
        "/api/auth/login", json={"email": "erin@example.com", "password": "wrong"}
    )
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_inactive_user_cannot_login(client: TestClient, make_user: Callable[..., User]) -> None:
    make_user("Frozen", status="SUSPENDED")
    response = client.post(
        "/api/auth/login", json={"email": "frozen@example.com", "password": PASSWORD}
    )
    assert response.status_code == 401


def test_refresh_rotates_token(client: TestClient, make_user: Callable[..., User]) -> None:
    make_user("Gale")
    first = login(client, "gale@example.com")["refreshToken"]

    response = client.post("/api/auth/refresh", json={"refreshToken": first})
    assert response.status_code == 200
    second = response.json()["data"]["refreshToken"]
    assert second != first

    replay = client.post("/api/auth/refresh", json={"refreshToken": first})
    assert replay.status_code == 401
    assert client.post("/api/auth/refresh", json={"refreshToken": second}).status_code == 200


def test_refresh_rejects_garbage(client: TestClient) -> None:
    response = client.post("/api/auth/refresh", json={"refreshToken": "not-a-jwt"})
    assert response.status_code == 401


def test_access_token_is_not_a_refresh_token(
    client: TestClient, make_user: Callable[..., User]
) -> None:
    make_user("Hal")
    access = login(client, "hal@example.com")["accessToken"]
    assert client.post("/api/auth/refresh", json={"refreshToken": access}).status_code == 401


def test_logout_single_token(
    client: TestClient, db: Session, make_user: Callable[..., User]
) -> None:
    user = make_user("Ivy")
    one = login(client, "ivy@example.com")
    two = login(client, "ivy@example.com")

    response = client.post(
        "/api/auth/logout",
        json={"refreshToken": one["refreshToken"]},
        headers={"Authorization": f"Bearer {one['accessToken']}"},
    )
    assert response.status_code == 200

    remaining = [t.token for t in db.query(RefreshToken).filter(RefreshToken.user_id == user.id)]
    assert remaining == [two["refreshToken"]]


def test_logout_everywhere(
    client: TestClient, db: Session, make_user: Callable[..., User]
) -> None:
    user = make_user("Jo")
    login(client, "jo@example.com")
    tokens = login(client, "jo@example.com")

    response = client.post(
        "/api/auth/logout", headers={"Authorization": f"Bearer {tokens['accessToken']}"}
    )
    assert response.status_code == 200
    assert db.query(RefreshToken).filter(RefreshToken.user_id == user.id).count() == 0


def test_forgot_password_does_not_reveal_accounts(client: TestClient) -> None:
    response = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_reset_password_flow(
    client: TestClient, db: Session, make_user: Callable[..., User]
) -> None:
    user = make_user("Kai")
    old_session = login(client, "kai@example.com")
    token = PasswordResetService(db).create_token(user)

    response = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "brand-new-pass"}
    )
    assert response.status_code == 200

    again = client.post(
        "/api/auth/reset-password", json={"token": token, "password": "another-pass"}
    )
    assert again.status_code == 400
    assert again.json()["message"] == "Reset token has already been used"

    assert login(client, "kai@example.com", "brand-new-pass")["accessToken"]
    revoked = client.post("/api/auth/refresh", json={"refreshToken": old_session["refreshToken"]})
    assert revoked.status_code == 401


def test_reset_password_unknown_token(client: TestClient) -> None:
    response = client.post(
        "/api/auth/reset-password", json={"token": "bogus", "password": "brand-new-pass"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid reset token"


def expire_reset_tokens(db: Session, user: User) -> None:
    db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).update(
        {PasswordResetToken.expires_at: utcnow() - timedelta(minutes=1)}
    )
    db.commit()


def test_verify_token_does_not_consume_it(db: Session, make_user: Callable[..., User]) -> None:
    user = make_user("Noor")
    service = PasswordResetService(db)
    token = service.create_token(user)

    assert service.verify_token(token).id == user.id
    assert service.reset_password(token, "brand-new-pass").id == user.id
    with pytest.raises(UsedTokenError):
        service.verify_token(token)
    with pytest.raises(InvalidTokenError):
        service.verify_token("bogus")


def test_verify_token_rejects_expired(db: Session, make_user: Callable[..., User]) -> None:
    user = make_user("Ola")
    service = PasswordResetService(db)
    token = service.create_token(user)
    expire_reset_tokens(db, user)

    with pytest.raises(ExpiredTokenError):
        service.verify_token(token)


def test_cleanup_removes_only_expired_tokens(
    db: Session, make_user: Callable[..., User]
) -> None:
    stale, fresh = make_user("Stale"), make_user("Fresh")
    service = PasswordResetService(db)
    service.create_token(stale)
    fresh_token = service.create_token(fresh)
    expire_reset_tokens(db, stale)

    assert service.cleanup_expired_tokens() == 1
    assert service.cleanup_expired_tokens() == 0
    assert [t.user_id for t in db.query(PasswordResetToken)] == [fresh.id]
    assert service.verify_token(fresh_token).id == fresh.id
