"""Sharing ledger: grant upserts, idempotent removal and share notifications."""

from collections.abc import Callable
from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from halosuite.core.exceptions import NotFoundError, ValidationFailedError
from halosuite.models import Document, DocumentShare, Notification, Team, User, utcnow
from halosuite.services.document_service import DocumentService
from halosuite.services.sharing_service import SharingLedger


@pytest.fixture
def owner(make_user: Callable[..., User]) -> User:
    return make_user("Owner")


@pytest.fixture
def reader(make_user: Callable[..., User]) -> User:
    return make_user("Reader")


@pytest.fixture
def document(db: Session, owner: User) -> Document:
    doc = Document(title="Roadmap", content="q3", owner_id=owner.id)
    db.add(doc)
    db.commit()
    return doc


def test_sharing_twice_updates_the_single_grant(
    db: Session, document: Document, reader: User
) -> None:
    ledger = SharingLedger(db)
    first = ledger.share(document.id, user_id=reader.id, permission="READ")
    second = ledger.share(document.id, user_id=reader.id, permission="EDIT")

    assert first.id == second.id
    grants = db.query(DocumentShare).filter(DocumentShare.document_id == document.id).all()
    assert len(grants) == 1
    assert grants[0].permission == "EDIT"


def test_resharing_clears_expiry(db: Session, document: Document, reader: User) -> None:
    ledger = SharingLedger(db)
    ledger.share(document.id, user_id=reader.id, expires_at=utcnow() - timedelta(hours=1))
    grant = ledger.share(document.id, user_id=reader.id)

    assert grant.expires_at is None


def test_permission_defaults_to_read(db: Session, document: Document, reader: User) -> None:
    grant = SharingLedger(db).share(document.id, user_id=reader.id, permission=None)
    assert grant.permission == "READ"


def test_exactly_one_grantee_required(
    db: Session,
    document: Document,
    reader: User,
    make_team: Callable[..., Team],
    owner: User,
) -> None:
    team = make_team(owner)
    ledger = SharingLedger(db)

    with pytest.raises(ValidationFailedError):
        ledger.share(document.id)
    with pytest.raises(ValidationFailedError):
        ledger.share(document.id, user_id=reader.id, team_id=team.id)


def test_unknown_grantee_is_not_found(db: Session, document: Document) -> None:
    with pytest.raises(NotFoundError):
        SharingLedger(db).share(document.id, user_id="nobody")
    with pytest.raises(NotFoundError):
        SharingLedger(db).share(document.id, team_id="no-team")


def test_unshare_is_idempotent(db: Session, document: Document, reader: User) -> None:
    ledger = SharingLedger(db)
    ledger.share(document.id, user_id=reader.id)

    assert ledger.unshare(document.id, user_id=reader.id) is True
    assert ledger.unshare(document.id, user_id=reader.id) is False
    assert ledger.list_shares(document.id) == []


def test_direct_share_notifies_grantee(
    db: Session, document: Document, owner: User, reader: User
) -> None:
    DocumentService(db).share(document.id, owner.id, user_id=reader.id, permission="COMMENT")

    notifications = db.query(Notification).filter(Notification.user_id == reader.id).all()
    assert len(notifications) == 1
    assert notifications[0].type == "document_shared"
    assert notifications[0].payload == {"documentId": document.id, "permission": "COMMENT"}


def test_team_share_sends_no_direct_notification(
    db: Session,
    document: Document,
    owner: User,
    reader: User,
    make_team: Callable[..., Team],
) -> None:
    team = make_team(owner, (reader,))
    DocumentService(db).share(document.id, owner.id, team_id=team.id)

    assert db.query(Notification).count() == 0


def test_shared_document_is_listed_for_grantee(
    db: Session, document: Document, owner: User, reader: User
) -> None:
    service = DocumentService(db)
    assert service.list(reader.id) == ([], 0)

    service.share(document.id, owner.id, user_id=reader.id)
    documents, total = service.list(reader.id)
    assert total == 1
    assert documents[0].id == document.id
