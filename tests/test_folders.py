"""Folder hierarchy: materialized paths, moves, renames and subtree deletion."""

from collections.abc import Callable

import pytest
from sqlalchemy.orm import Session

from halosuite.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from halosuite.models import File, Folder, User
from halosuite.schemas.file import FileCreate
from halosuite.services.file_service import FileService
from halosuite.services.folder_service import FolderService, build_folder_tree, check_folder_name


@pytest.fixture
def owner(make_user: Callable[..., User]) -> User:
    return make_user("Owner")


@pytest.fixture
def folders(db: Session) -> FolderService:
    return FolderService(db)


def paths(db: Session, owner: User) -> list[str]:
    db.expire_all()
    return sorted(f.path for f in db.query(Folder).filter(Folder.owner_id == owner.id))


def test_child_path_extends_parent(folders: FolderService, owner: User) -> None:
    projects = folders.create("Projects", owner.id)
    q3 = folders.create("Q3", owner.id, parent_id=projects.id)

    assert projects.path == "/Projects"
    assert q3.path == "/Projects/Q3"
    assert q3.parent_id == projects.id


def test_duplicate_path_conflicts(folders: FolderService, owner: User) -> None:
    folders.create("Projects", owner.id)
    with pytest.raises(ConflictError):
        folders.create("Projects", owner.id)


def test_same_name_for_different_owners(
    folders: FolderService, owner: User, make_user: Callable[..., User]
) -> None:
    other = make_user("Other")
    folders.create("Projects", owner.id)
    assert folders.create("Projects", other.id).path == "/Projects"


def test_parent_of_another_owner_is_not_found(
    folders: FolderService, owner: User, make_user: Callable[..., User]
) -> None:
    other = make_user("Other")
    theirs = folders.create("Private", other.id)
    with pytest.raises(NotFoundError):
        folders.create("Sneaky", owner.id, parent_id=theirs.id)


@pytest.mark.parametrize("name", ["", "   ", "a/b"])
def test_invalid_folder_names(name: str) -> None:
    with pytest.raises(ValidationFailedError):
        check_folder_name(name)


def test_rename_rewrites_descendant_paths(
    db: Session, folders: FolderService, owner: User
) -> None:
    projects = folders.create("Projects", owner.id)
    year = folders.create("2024", owner.id, parent_id=projects.id)
    folders.create("Q1", owner.id, parent_id=year.id)
    folders.create("Other", owner.id)

    renamed = folders.rename(projects.id, "Archive")

    assert renamed.name == "Archive"
    assert paths(db, owner) == ["/Archive", "/Archive/2024", "/Archive/2024/Q1", "/Other"]


def test_rename_does_not_touch_prefix_siblings(
    db: Session, folders: FolderService, owner: User
) -> None:
    folders.create("Projects", owner.id)
    lookalike = folders.create("ProjectsOld", owner.id)
    folders.create("Notes", owner.id, parent_id=lookalike.id)

    projects = db.query(Folder).filter(Folder.path == "/Projects").one()
    folders.rename(projects.id, "Work")

    assert paths(db, owner) == ["/ProjectsOld", "/ProjectsOld/Notes", "/Work"]


def test_move_reparents_subtree(db: Session, folders: FolderService, owner: User) -> None:
    inbox = folders.create("Inbox", owner.id)
    archive = folders.create("Archive", owner.id)
    folders.create("Receipts", owner.id, parent_id=inbox.id)

    moved = folders.move(inbox.id, archive.id)

    assert moved.parent_id == archive.id
    assert paths(db, owner) == ["/Archive", "/Archive/Inbox", "/Archive/Inbox/Receipts"]


def test_move_to_root(db: Session, folders: FolderService, owner: User) -> None:
    parent = folders.create("Parent", owner.id)
    child = folders.create("Child", owner.id, parent_id=parent.id)

    moved = folders.move(child.id, None)

    assert moved.parent_id is None
    assert moved.path == "/Child"


def test_move_into_own_descendant_is_rejected(folders: FolderService, owner: User) -> None:
    parent = folders.create("Parent", owner.id)
    child = folders.create("Child", owner.id, parent_id=parent.id)

    with pytest.raises(ValidationFailedError):
        folders.move(parent.id, child.id)
    with pytest.raises(ValidationFailedError):
        folders.move(parent.id, parent.id)


def test_move_onto_existing_path_conflicts(
    db: Session, folders: FolderService, owner: User
) -> None:
    folders.create("Docs", owner.id)
    archive = folders.create("Archive", owner.id)
    folders.create("Docs", owner.id, parent_id=archive.id)
    docs = db.query(Folder).filter(Folder.path == "/Docs").one()

    with pytest.raises(ConflictError):
        folders.move(docs.id, archive.id)
    assert paths(db, owner) == ["/Archive", "/Archive/Docs", "/Docs"]


def test_tree_nests_children(folders: FolderService, owner: User) -> None:
    a = folders.create("A", owner.id)
    folders.create("B", owner.id, parent_id=a.id)
    folders.create("C", owner.id)

    tree = folders.get_tree(owner.id)

    assert [node.name for node in tree] == ["A", "C"]
    assert [child.path for child in tree[0].children] == ["/A/B"]


def test_tree_drops_orphans() -> None:
    records = [
        Folder(id="root", name="Root", path="/Root", parent_id=None),
        Folder(id="child", name="Child", path="/Root/Child", parent_id="root"),
        Folder(id="orphan", name="Orphan", path="/Gone/Orphan", parent_id="gone"),
        Folder(id="under-orphan", name="Deep", path="/Gone/Orphan/Deep", parent_id="orphan"),
    ]

    tree = build_folder_tree(records)

    assert len(tree) == 1
    assert tree[0].id == "root"
    assert [child.id for child in tree[0].children] == ["child"]


def test_delete_removes_subtree_and_releases_quota(
    db: Session, folders: FolderService, owner: User
) -> None:
    files = FileService(db)
    top = folders.create("Top", owner.id)
    nested = folders.create("Nested", owner.id, parent_id=top.id)
    keep = folders.create("Keep", owner.id)
    for folder_id, size in [(top.id, 100), (nested.id, 250), (keep.id, 40)]:
        upload = FileCreate(
            name="f.txt", path="/f.txt", mimeType="text/plain", size=size, folderId=folder_id
        )
        files.create(upload, owner.id)

    removed = folders.delete(top.id)

    db.expire_all()
    assert removed == 2
    assert paths(db, owner) == ["/Keep"]
    assert db.query(File).count() == 1
    assert db.get(User, owner.id).quota_used == 40


def test_delete_missing_folder(folders: FolderService) -> None:
    with pytest.raises(NotFoundError):
        folders.delete("missing")
