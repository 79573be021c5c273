"""Shared fixtures: an isolated in-memory database per test and model factories."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import Callable, Generator, Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from halosuite.core.database import build_engine, get_db  # noqa: E402
from halosuite.core.security import create_access_token, hash_password  # noqa: E402
from halosuite.main import app  # noqa: E402
from halosuite.models import (  # noqa: E402
    Base,
    Permission,
    Role,
    RolePermission,
    Team,
    TeamMember,
    User,
    UserRole,
)

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Fresh in-memory database shared by every session of one test."""
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory: sessionmaker[Session]) -> Iterator[TestClient]:
    """Test client whose requests each get their own session on the test database."""

    def override_get_db() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory creating committed users; emails default to ``<name>@example.com``."""
    counter = {"n": 0}

    def factory(name: str | None = None, **fields: object) -> User:
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        user = User(
            email=fields.pop("email", f"{name.lower()}@example.com"),
            username=fields.pop("username", name.lower()),
            name=name,
            password=PASSWORD_HASH,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


@pytest.fixture
def make_team(db: Session) -> Callable[..., Team]:
    def factory(owner: User, members: tuple[User, ...] = (), name: str = "Team") -> Team:
        team = Team(name=name, owner_id=owner.id)
        db.add(team)
        db.flush()
        for user in [owner, *members]:
            db.add(TeamMember(team_id=team.id, user_id=user.id))
        db.commit()
        db.refresh(team)
        return team

    return factory


@pytest.fixture
def grant_role(db: Session) -> Callable[..., Role]:
    """Give a user a role holding the given permission actions."""

    def factory(user: User, *actions: str, name: str = "admin") -> Role:
        role = db.query(Role).filter(Role.name == name).first()
        if role is None:
            role = Role(name=name, label=name.title())
            db.add(role)
            db.flush()
        for action in actions:
            permission = db.query(Permission).filter(Permission.action == action).first()
            if permission is None:
                permission = Permission(action=action, resource=action.split(":", 1)[0])
                db.add(permission)
                db.flush()
            db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        db.add(UserRole(user_id=user.id, role_id=role.id))
        db.commit()
        db.refresh(role)
        return role

    return factory


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Bearer headers for a user."""

    def headers(user: User) -> dict[str, str]:
        token = create_access_token({"sub": user.id, "email": user.email})
        return {"Authorization": f"Bearer {token}"}

    return headers
