"""Document routes: visibility, ownership checks, sharing and tags."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from halosuite.models import Team, User

Headers = Callable[[User], dict[str, str]]


@pytest.fixture
def owner(make_user: Callable[..., User]) -> User:
    return make_user("Owner")


@pytest.fixture
def stranger(make_user: Callable[..., User]) -> User:
    return make_user("Stranger")


def create_document(client: TestClient, headers: dict[str, str], **fields: object) -> dict:
    payload = {"title": "Plan", "content": "hello", **fields}
    response = client.post("/api/documents", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def read_status(client: TestClient, document_id: str, headers: dict[str, str]) -> int:
    return client.get(f"/api/documents/{document_id}", headers=headers).status_code


def test_create_computes_size_and_tags(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    doc = create_document(
        client, auth_headers(owner), content="héllo", tags=["work", "q3", "work"]
    )

    assert doc["size"] == 6
    assert sorted(doc["tags"]) == ["q3", "work"]
    assert doc["author"]["id"] == owner.id
    assert doc["views"] == 0


def test_reading_counts_views(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    doc = create_document(client, headers)

    client.get(f"/api/documents/{doc['id']}", headers=headers)
    response = client.get(f"/api/documents/{doc['id']}", headers=headers)

    assert response.json()["data"]["views"] == 2


def test_stranger_gets_404_on_read_and_403_on_write(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    doc = create_document(client, auth_headers(owner))
    headers = auth_headers(stranger)

    assert client.get(f"/api/documents/{doc['id']}", headers=headers).status_code == 404
    update = client.put(f"/api/documents/{doc['id']}", json={"title": "Mine"}, headers=headers)
    assert update.status_code == 403
    assert client.delete(f"/api/documents/{doc['id']}", headers=headers).status_code == 403


def test_missing_document_is_404(client: TestClient, owner: User, auth_headers: Headers) -> None:
    response = client.get("/api/documents/does-not-exist", headers=auth_headers(owner))
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Document not found"}


def test_partial_update_keeps_unset_fields(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    doc = create_document(client, headers, folder="notes")

    response = client.put(
        f"/api/documents/{doc['id']}", json={"title": "Renamed", "content": ""}, headers=headers
    )

    data = response.json()["data"]
    assert data["title"] == "Renamed"
    assert data["content"] == "hello"
    assert data["folder"] == "notes"


def test_share_grants_read_access_and_notifies(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    doc = create_document(client, auth_headers(owner))

    shared = client.post(
        f"/api/documents/{doc['id']}/share",
        json={"userId": stranger.id, "permission": "EDIT"},
        headers=auth_headers(owner),
    )
    assert shared.status_code == 200
    assert shared.json()["data"]["permission"] == "EDIT"

    reader = auth_headers(stranger)
    assert client.get(f"/api/documents/{doc['id']}", headers=reader).status_code == 200
    listed = client.get("/api/documents", headers=reader).json()
    assert [d["id"] for d in listed["data"]] == [doc["id"]]
    assert listed["meta"]["total"] == 1

    notifications = client.get("/api/notifications", headers=reader).json()["data"]
    assert notifications[0]["type"] == "document_shared"

    # a grant does not confer ownership
    rename = client.patch(
        f"/api/documents/{doc['id']}/rename", json={"title": "x"}, headers=reader
    )
    assert rename.status_code == 403


def test_share_needs_exactly_one_grantee(
    client: TestClient,
    owner: User,
    stranger: User,
    make_team: Callable[..., Team],
    auth_headers: Headers,
) -> None:
    team = make_team(owner)
    doc = create_document(client, auth_headers(owner))
    url = f"/api/documents/{doc['id']}/share"

    assert client.post(url, json={}, headers=auth_headers(owner)).status_code == 400
    both = {"userId": stranger.id, "teamId": team.id}
    assert client.post(url, json=both, headers=auth_headers(owner)).status_code == 400


def test_team_share_reaches_members(
    client: TestClient,
    owner: User,
    stranger: User,
    make_user: Callable[..., User],
    make_team: Callable[..., Team],
    auth_headers: Headers,
) -> None:
    member = make_user("Member")
    team = make_team(owner, (member,))
    doc = create_document(client, auth_headers(owner))

    client.post(
        f"/api/documents/{doc['id']}/share",
        json={"teamId": team.id},
        headers=auth_headers(owner),
    )

    assert read_status(client, doc["id"], auth_headers(member)) == 200
    assert read_status(client, doc["id"], auth_headers(stranger)) == 404


def test_unshare_is_idempotent_and_revokes(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    doc = create_document(client, headers)
    client.post(f"/api/documents/{doc['id']}/share", json={"userId": stranger.id}, headers=headers)

    for _ in range(2):
        response = client.post(
            f"/api/documents/{doc['id']}/unshare", json={"userId": stranger.id}, headers=headers
        )
        assert response.status_code == 200

    assert read_status(client, doc["id"], auth_headers(stranger)) == 404
    shares = client.get(f"/api/documents/{doc['id']}/shares", headers=headers).json()["data"]
    assert shares == []


def test_tags_are_replaced(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    doc = create_document(client, headers, tags=["a", "b"])

    response = client.post(
        f"/api/documents/{doc['id']}/tags", json={"tags": ["b", "c"]}, headers=headers
    )

    assert sorted(response.json()["data"]["tags"]) == ["b", "c"]


def test_list_filters_by_tag_and_search(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    create_document(client, headers, title="Budget 2024", tags=["finance"])
    create_document(client, headers, title="Team offsite", tags=["events"])

    by_tag = client.get("/api/documents", params={"tags": "finance"}, headers=headers).json()
    by_search = client.get("/api/documents", params={"search": "offsite"}, headers=headers).json()

    assert [d["title"] for d in by_tag["data"]] == ["Budget 2024"]
    assert [d["title"] for d in by_search["data"]] == ["Team offsite"]


def test_batch_delete_skips_foreign_documents(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    mine = create_document(client, auth_headers(owner))
    theirs = create_document(client, auth_headers(stranger))

    response = client.post(
        "/api/documents/batch-delete",
        json={"ids": [mine["id"], theirs["id"]]},
        headers=auth_headers(owner),
    )

    assert response.json()["data"] == {"deletedCount": 1}
    assert read_status(client, theirs["id"], auth_headers(stranger)) == 200
