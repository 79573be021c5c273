"""File and folder routes: owner-only access, storage accounting and tree views."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from halosuite.models import User

Headers = Callable[[User], dict[str, str]]


@pytest.fixture
def owner(make_user: Callable[..., User]) -> User:
    return make_user("Owner")


@pytest.fixture
def stranger(make_user: Callable[..., User]) -> User:
    return make_user("Stranger")


def upload(client: TestClient, headers: dict[str, str], size: int = 100, **fields: object) -> dict:
    payload = {
        "name": "report.pdf",
        "path": "/report.pdf",
        "mimeType": "application/pdf",
        "size": size,
        **fields,
    }
    response = client.post("/api/files/upload", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def make_folder(
    client: TestClient, headers: dict[str, str], name: str, parent_id: str | None = None
) -> dict:
    response = client.post(
        "/api/folders", json={"name": name, "parentId": parent_id}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def storage_used(client: TestClient, headers: dict[str, str]) -> int:
    return client.get("/api/files/storage", headers=headers).json()["data"]["used"]


def test_upload_and_storage(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    upload(client, headers, size=300)
    upload(client, headers, size=200)

    storage = client.get("/api/files/storage", headers=headers).json()["data"]

    assert storage["used"] == 500
    assert storage["available"] == storage["total"] - 500


def test_negative_size_rejected(client: TestClient, owner: User, auth_headers: Headers) -> None:
    response = client.post(
        "/api/files/upload",
        json={"name": "x", "path": "/x", "mimeType": "text/plain", "size": -1},
        headers=auth_headers(owner),
    )
    assert response.status_code == 400


def test_files_are_private(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    file = upload(client, auth_headers(owner))
    headers = auth_headers(stranger)

    assert client.get(f"/api/files/{file['id']}", headers=headers).status_code == 404
    assert client.delete(f"/api/files/{file['id']}", headers=headers).status_code == 403
    assert client.get("/api/files", headers=headers).json()["data"] == []


def test_copy_and_delete_adjust_storage(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    file = upload(client, headers, size=250)

    copy = client.post(f"/api/files/{file['id']}/copy", headers=headers)
    assert copy.status_code == 201
    assert storage_used(client, headers) == 500

    client.delete(f"/api/files/{file['id']}", headers=headers)
    assert storage_used(client, headers) == 250


def test_batch_delete_only_touches_callers_files(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    mine = upload(client, auth_headers(owner), size=100)
    theirs = upload(client, auth_headers(stranger), size=400)

    response = client.post(
        "/api/files/batch-delete",
        json={"ids": [mine["id"], theirs["id"]]},
        headers=auth_headers(owner),
    )

    assert response.json()["data"] == {"deletedCount": 1}
    assert storage_used(client, auth_headers(owner)) == 0
    assert storage_used(client, auth_headers(stranger)) == 400


def test_favorite_toggles(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    file = upload(client, headers)
    url = f"/api/files/{file['id']}/favorite"

    assert client.patch(url, headers=headers).json()["data"]["isFavorite"] is True
    assert client.patch(url, headers=headers).json()["data"]["isFavorite"] is False


def test_download_url(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    file = upload(client, headers, name="Q3 plan.pdf")

    url = client.get(f"/api/files/{file['id']}/download-url", headers=headers).json()["data"]

    assert url["url"] == f"/uploads/{file['id']}/Q3%20plan.pdf"


def test_list_files_in_folder(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    folder = make_folder(client, headers, "Reports")
    upload(client, headers, name="in.pdf", folderId=folder["id"])
    upload(client, headers, name="out.pdf")

    body = client.get("/api/files", params={"folderId": folder["id"]}, headers=headers).json()

    assert [f["name"] for f in body["data"]] == ["in.pdf"]
    assert body["meta"]["total"] == 1


def test_upload_into_foreign_folder_is_404(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    folder = make_folder(client, auth_headers(stranger), "Theirs")
    response = client.post(
        "/api/files/upload",
        json={
            "name": "x.txt",
            "path": "/x.txt",
            "mimeType": "text/plain",
            "size": 1,
            "folderId": folder["id"],
        },
        headers=auth_headers(owner),
    )
    assert response.status_code == 404


def test_folder_rename_moves_subtree(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    projects = make_folder(client, headers, "Projects")
    year = make_folder(client, headers, "2024", projects["id"])

    renamed = client.patch(
        f"/api/folders/{projects['id']}", json={"name": "Archive"}, headers=headers
    )
    assert renamed.json()["data"]["path"] == "/Archive"

    child = client.get(f"/api/folders/{year['id']}", headers=headers).json()["data"]
    assert child["path"] == "/Archive/2024"


def test_folder_name_with_slash_is_invalid(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    response = client.post("/api/folders", json={"name": "a/b"}, headers=auth_headers(owner))
    assert response.status_code == 400


def test_folder_move_into_descendant_rejected(
    client: TestClient, owner: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    parent = make_folder(client, headers, "Parent")
    child = make_folder(client, headers, "Child", parent["id"])

    response = client.post(
        f"/api/folders/{parent['id']}/move", json={"parentId": child["id"]}, headers=headers
    )
    assert response.status_code == 400


def test_duplicate_folder_conflicts(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    make_folder(client, headers, "Docs")
    response = client.post("/api/folders", json={"name": "Docs"}, headers=headers)
    assert response.status_code == 409


def test_folder_tree(client: TestClient, owner: User, auth_headers: Headers) -> None:
    headers = auth_headers(owner)
    root = make_folder(client, headers, "Root")
    make_folder(client, headers, "Leaf", root["id"])

    tree = client.get("/api/folders/tree", headers=headers).json()["data"]

    assert [node["name"] for node in tree] == ["Root"]
    assert [node["path"] for node in tree[0]["children"]] == ["/Root/Leaf"]


def test_folder_delete_cascades_and_releases_storage(
    client: TestClient, owner: User, stranger: User, auth_headers: Headers
) -> None:
    headers = auth_headers(owner)
    top = make_folder(client, headers, "Top")
    inner = make_folder(client, headers, "Inner", top["id"])
    upload(client, headers, size=70, folderId=top["id"])
    upload(client, headers, size=30, folderId=inner["id"])

    denied = client.delete(f"/api/folders/{top['id']}", headers=auth_headers(stranger))
    assert denied.status_code == 403

    response = client.delete(f"/api/folders/{top['id']}", headers=headers)
    assert response.json()["message"] == "Folder deleted with 2 files"
    assert storage_used(client, headers) == 0
    assert client.get(f"/api/folders/{inner['id']}", headers=headers).status_code == 404
