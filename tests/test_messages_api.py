"""Messaging routes: direct sends, conversation reads and participant checks."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from halosuite.models import User

Headers = Callable[[User], dict[str, str]]


@pytest.fixture
def alice(make_user: Callable[..., User]) -> User:
    return make_user("Alice")


@pytest.fixture
def bob(make_user: Callable[..., User]) -> User:
    return make_user("Bob")


def send(client: TestClient, headers: dict[str, str], **payload: object) -> dict:
    response = client.post("/api/messages/send", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_direct_send_reuses_conversation(
    client: TestClient, alice: User, bob: User, auth_headers: Headers
) -> None:
    first = send(client, auth_headers(alice), recipientId=bob.id, content="hi")
    reply = send(client, auth_headers(bob), recipientId=alice.id, content="hey")

    assert first["conversationId"] == reply["conversationId"]
    assert first["sender"]["id"] == alice.id


def test_send_needs_a_target(client: TestClient, alice: User, auth_headers: Headers) -> None:
    response = client.post(
        "/api/messages/send", json={"content": "into the void"}, headers=auth_headers(alice)
    )
    assert response.status_code == 400


def test_unread_count_clears_on_read(
    client: TestClient, alice: User, bob: User, auth_headers: Headers
) -> None:
    sent = send(client, auth_headers(alice), recipientId=bob.id, content="one")
    send(client, auth_headers(alice), conversationId=sent["conversationId"], content="two")

    listing = client.get("/api/messages/conversations", headers=auth_headers(bob)).json()["data"]
    assert listing[0]["unreadCount"] == 2
    assert listing[0]["lastMessage"]["content"] == "two"

    detail = client.get(
        f"/api/messages/conversations/{sent['conversationId']}", headers=auth_headers(bob)
    ).json()["data"]
    assert [m["content"] for m in detail["messages"]] == ["one", "two"]

    listing = client.get("/api/messages/conversations", headers=auth_headers(bob)).json()["data"]
    assert listing[0]["unreadCount"] == 0


def test_outsider_is_kept_out(
    client: TestClient,
    alice: User,
    bob: User,
    make_user: Callable[..., User],
    auth_headers: Headers,
) -> None:
    sent = send(client, auth_headers(alice), recipientId=bob.id, content="private")
    eve = auth_headers(make_user("Eve"))
    conversation_url = f"/api/messages/conversations/{sent['conversationId']}"

    assert client.get(conversation_url, headers=eve).status_code == 404
    intrusion = client.post(
        "/api/messages/send",
        json={"conversationId": sent["conversationId"], "content": "hello?"},
        headers=eve,
    )
    assert intrusion.status_code == 403


def test_group_conversation(
    client: TestClient,
    alice: User,
    bob: User,
    make_user: Callable[..., User],
    auth_headers: Headers,
) -> None:
    carol = make_user("Carol")
    response = client.post(
        "/api/messages/conversations",
        json={"participantIds": [bob.id, carol.id], "name": "Launch"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["isGroup"] is True
    roles = {p["id"]: p["role"] for p in data["participants"]}
    assert roles == {alice.id: "owner", bob.id: "member", carol.id: "member"}


def test_leave_conversation(
    client: TestClient, alice: User, bob: User, auth_headers: Headers
) -> None:
    sent = send(client, auth_headers(alice), recipientId=bob.id, content="bye")
    url = f"/api/messages/conversations/{sent['conversationId']}"

    assert client.delete(url, headers=auth_headers(bob)).status_code == 200
    assert client.get(url, headers=auth_headers(bob)).status_code == 404
    assert client.get(url, headers=auth_headers(alice)).status_code == 200


def test_only_sender_deletes_message(
    client: TestClient, alice: User, bob: User, auth_headers: Headers
) -> None:
    sent = send(client, auth_headers(alice), recipientId=bob.id, content="typo")

    url = f"/api/messages/{sent['id']}"

    assert client.delete(url, headers=auth_headers(bob)).status_code == 403
    assert client.delete(url, headers=auth_headers(alice)).status_code == 200


def test_cannot_message_yourself_directly(
    client: TestClient, alice: User, bob: User, auth_headers: Headers
) -> None:
    existing = send(client, auth_headers(alice), recipientId=bob.id, content="hi")

    response = client.post(
        "/api/messages/send",
        json={"recipientId": alice.id, "content": "note to self"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 400
    listing = client.get("/api/messages/conversations", headers=auth_headers(bob)).json()["data"]
    assert [c["id"] for c in listing] == [existing["conversationId"]]
    assert listing[0]["unreadCount"] == 1
