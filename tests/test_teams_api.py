"""Team routes: membership, owner-only changes and cleanup on delete."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from halosuite.models import Document, DocumentShare, User

Headers = Callable[[User], dict[str, str]]


@pytest.fixture
def lead(make_user: Callable[..., User]) -> User:
    return make_user("Lead")


@pytest.fixture
def dev(make_user: Callable[..., User]) -> User:
    return make_user("Dev")


def create_team(client: TestClient, headers: dict[str, str], name: str = "Platform") -> dict:
    response = client.post("/api/teams", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_creator_is_owner_and_member(client: TestClient, lead: User, auth_headers: Headers) -> None:
    team = create_team(client, auth_headers(lead))

    assert team["owner"]["id"] == lead.id
    assert [m["id"] for m in team["members"]] == [lead.id]
    assert team["memberCount"] == 1


def test_adding_a_member_twice_keeps_one_row(
    client: TestClient, lead: User, dev: User, auth_headers: Headers
) -> None:
    team = create_team(client, auth_headers(lead))
    url = f"/api/teams/{team['id']}/members"

    client.post(url, json={"userId": dev.id}, headers=auth_headers(lead))
    response = client.post(url, json={"userId": dev.id}, headers=auth_headers(lead))

    data = response.json()["data"]
    assert sorted(m["id"] for m in data["members"]) == sorted([lead.id, dev.id])
    assert data["memberCount"] == 2


def test_members_read_but_only_owner_manages(
    client: TestClient, lead: User, dev: User, auth_headers: Headers
) -> None:
    team = create_team(client, auth_headers(lead))
    client.post(
        f"/api/teams/{team['id']}/members", json={"userId": dev.id}, headers=auth_headers(lead)
    )
    headers = auth_headers(dev)

    assert client.get(f"/api/teams/{team['id']}", headers=headers).status_code == 200
    rename = client.patch(f"/api/teams/{team['id']}", json={"name": "Mine"}, headers=headers)
    assert rename.status_code == 403
    assert client.delete(f"/api/teams/{team['id']}", headers=headers).status_code == 403


def test_outsider_gets_404(
    client: TestClient, lead: User, dev: User, auth_headers: Headers
) -> None:
    team = create_team(client, auth_headers(lead))
    assert client.get(f"/api/teams/{team['id']}", headers=auth_headers(dev)).status_code == 404
    assert client.get("/api/teams", headers=auth_headers(dev)).json()["data"] == []


def test_owner_cannot_be_removed(client: TestClient, lead: User, auth_headers: Headers) -> None:
    team = create_team(client, auth_headers(lead))
    response = client.delete(
        f"/api/teams/{team['id']}/members/{lead.id}", headers=auth_headers(lead)
    )
    assert response.status_code == 400


def test_removed_member_loses_team_grants(
    client: TestClient, db: Session, lead: User, dev: User, auth_headers: Headers
) -> None:
    team = create_team(client, auth_headers(lead))
    client.post(
        f"/api/teams/{team['id']}/members", json={"userId": dev.id}, headers=auth_headers(lead)
    )
    document = Document(title="Runbook", content="", owner_id=lead.id)
    db.add(document)
    db.flush()
    db.add(DocumentShare(document_id=document.id, team_id=team["id"], permission="READ"))
    db.commit()
    url = f"/api/documents/{document.id}"

    assert client.get(url, headers=auth_headers(dev)).status_code == 200
    client.delete(f"/api/teams/{team['id']}/members/{dev.id}", headers=auth_headers(lead))
    assert client.get(url, headers=auth_headers(dev)).status_code == 404


def test_deleting_team_keeps_documents(
    client: TestClient, db: Session, lead: User, auth_headers: Headers
) -> None:
    team = create_team(client, auth_headers(lead))
    document = Document(title="Team doc", content="", owner_id=lead.id, team_id=team["id"])
    db.add(document)
    db.flush()
    db.add(DocumentShare(document_id=document.id, team_id=team["id"], permission="READ"))
    db.commit()
    document_id = document.id

    response = client.delete(f"/api/teams/{team['id']}", headers=auth_headers(lead))

    assert response.status_code == 200
    db.expire_all()
    kept = db.get(Document, document_id)
    assert kept is not None
    assert kept.team_id is None
    assert db.query(DocumentShare).count() == 0


def test_search_teams(client: TestClient, lead: User, auth_headers: Headers) -> None:
    headers = auth_headers(lead)
    create_team(client, headers, "Platform")
    create_team(client, headers, "Design")

    body = client.get("/api/teams", params={"search": "des"}, headers=headers).json()

    assert [t["name"] for t in body["data"]] == ["Design"]
    assert body["meta"]["total"] == 1
