"""Team service for business logic."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from halosuite.core.database import transaction
from halosuite.core.exceptions import NotFoundError, ValidationFailedError
from halosuite.models import Role, Team, TeamMember, User
from halosuite.schemas.common import page_offset
from halosuite.schemas.team import TeamCreate, TeamUpdate
from halosuite.services.access import TeamAccessPolicy

logger = logging.getLogger(__name__)


class TeamService:
    """Team service for managing team operations."""

    def __init__(self, db: Session) -> None:
        """Initialize team service.

        Args:
            db: Database session
        """
        self.db = db
        self.policy = TeamAccessPolicy(db)

    def get_by_id(self, team_id: str, with_members: bool = False) -> Team | None:
        """Get team by ID.

        Args:
            team_id: Team ID
            with_members: Whether to eager load members

        Returns:
            Team or None if not found
        """
        query = self.db.query(Team).filter(Team.id == team_id).options(joinedload(Team.owner))
        if with_members:
            query = query.options(selectinload(Team.members).joinedload(TeamMember.user))
        return query.first()

    def get(self, team_id: str) -> Team:
        team = self.get_by_id(team_id, with_members=True)
        if not team:
            raise NotFoundError("Team not found")
        return team

    def list(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
    ) -> tuple[list[Team], int]:
        """Get teams the user owns or belongs to, newest first.

        Returns:
            Tuple of (teams, total_count)
        """
        memberships = self.db.query(TeamMember.team_id).filter(TeamMember.user_id == user_id)
        query = self.db.query(Team).filter(
            or_(Team.owner_id == user_id, Team.id.in_(memberships))
        )
        if search:
            query = query.filter(Team.name.ilike(f"%{search}%"))

        total = query.count()
        teams = (
            query.options(joinedload(Team.owner))
            .order_by(Team.created_at.desc(), Team.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return teams, total

    def get_member_count(self, team_id: str) -> int:
        return (
            self.db.query(func.count(TeamMember.user_id))
            .filter(TeamMember.team_id == team_id)
            .scalar()
            or 0
        )

    def create(self, team_data: TeamCreate, owner_id: str) -> Team:
        """Create a team with its owner as the first member.

        Args:
            team_data: Team creation data
            owner_id: Owner user ID

        Returns:
            Created team
        """
        with transaction(self.db):
            team = Team(
                name=team_data.name,
                description=team_data.description,
                avatar=team_data.avatar,
                owner_id=owner_id,
            )
            self.db.add(team)
            self.db.flush()
            self.db.add(TeamMember(team_id=team.id, user_id=owner_id))

        logger.info("Team %s created by %s", team.id, owner_id)
        return self.get(team.id)

    def update(self, team_id: str, team_data: TeamUpdate) -> Team:
        team = self.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team not found")

        for key, value in team_data.model_dump(exclude_unset=True).items():
            if value is not None and value != "":
                setattr(team, key, value)

        self.db.commit()
        return self.get(team_id)

    def delete(self, team_id: str) -> None:
        team = self.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team not found")

        self.db.delete(team)
        self.db.commit()
        logger.info("Team %s deleted", team_id)

    def add_member(self, team_id: str, user_id: str, role_id: str | None = None) -> TeamMember:
        """Add a member, or update the role of an existing one.

        Args:
            team_id: Team ID
            user_id: User ID to add
            role_id: Optional role ID for the member

        Returns:
            The membership row

        Raises:
            NotFoundError: If the team, user or role does not exist
        """
        if self.db.get(Team, team_id) is None:
            raise NotFoundError("Team not found")
        user = self.db.get(User, user_id)
        if user is None or user.is_deleted:
            raise NotFoundError("User not found")
        if role_id and self.db.get(Role, role_id) is None:
            raise NotFoundError("Role not found")

        member = self.db.get(TeamMember, (team_id, user_id))
        if member:
            if role_id is not None:
                member.role_id = role_id
        else:
            member = TeamMember(team_id=team_id, user_id=user_id, role_id=role_id)
            self.db.add(member)

        self.db.commit()
        self.db.refresh(member)
        logger.info("User %s added to team %s", user_id, team_id)
        return member

    def remove_member(self, team_id: str, user_id: str) -> None:
        """Remove a member; the owner cannot be removed.

        Raises:
            NotFoundError: If the team or membership does not exist
            ValidationFailedError: If ``user_id`` is the team owner
        """
        team = self.db.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        if team.owner_id == user_id:
            raise ValidationFailedError("Cannot remove the team owner")

        member = self.db.get(TeamMember, (team_id, user_id))
        if not member:
            raise NotFoundError("Member not found")

        self.db.delete(member)
        self.db.commit()
        logger.info("User %s removed from team %s", user_id, team_id)

    def is_owner(self, team_id: str, user_id: str) -> bool:
        return self.policy.is_owner(team_id, user_id)

    def is_member(self, team_id: str, user_id: str) -> bool:
        return self.policy.is_member(team_id, user_id)

    def has_access(self, team_id: str, user_id: str) -> bool:
        return self.policy.has_access(team_id, user_id)
