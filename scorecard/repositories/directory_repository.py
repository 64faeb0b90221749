from typing import Dict, Iterable, List, Optional

from sqlalchemy import select

from scorecard.models.team import Team, TeamMembership
from scorecard.models.user import User
from scorecard.repositories.base import BaseRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Role


class DirectoryRepository(BaseRepository):
    """Read-only access to users, teams and team memberships.

    This is the only place that knows how the directory is stored; the
    authorizer and services work with ``User``/``Team`` rows and ids.
    Every read hits the database so membership and role changes take
    effect immediately.
    """

    async def get_user(self, user_id: str) -> Optional[User]:
        """Return a single user by primary key, or ``None``."""
        result = await self._db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Return the users with the given ids keyed by id."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self._db.execute(select(User).where(User.id.in_(ids)))
        return {user.id: user for user in result.scalars().all()}

    async def get_actor(self, user_id: str) -> Optional[Actor]:
        """Return the current ``Actor`` view of a user, or ``None``."""
        user = await self.get_user(user_id)
        if user is None:
            return None
        return Actor(
            id=user.id,
            role=Role(user.role),
            company_id=user.company_id,
            is_active=user.is_active,
            email=user.email,
            display_name=user.display_name,
        )

    async def get_subject_role(self, user_id: str) -> Optional[Role]:
        result = await self._db.execute(select(User.role).where(User.id == user_id))
        role = result.scalar_one_or_none()
        return Role(role) if role is not None else None

    async def get_teams_managed_by(self, user_id: str) -> List[Team]:
        """Return teams whose manager is *user_id*, ordered by name."""
        result = await self._db.execute(
            select(Team).where(Team.manager_id == user_id).order_by(Team.name, Team.id)
        )
        return list(result.scalars().all())

    async def get_teams_of(self, user_id: str) -> List[Team]:
        """Return teams *user_id* is a member of, ordered by name."""
        result = await self._db.execute(
            select(Team)
            .join(TeamMembership, TeamMembership.team_id == Team.id)
            .where(TeamMembership.user_id == user_id)
            .order_by(Team.name, Team.id)
        )
        return list(result.scalars().all())

    async def get_team_members(self, team_id: str) -> List[str]:
        """Return the user ids belonging to *team_id*."""
        result = await self._db.execute(
            select(TeamMembership.user_id)
            .where(TeamMembership.team_id == team_id)
            .order_by(TeamMembership.user_id)
        )
        return list(result.scalars().all())

    async def list_users(self, scope: ResolvedScope, role: Role) -> List[User]:
        """Return active users with *role* inside *scope*."""
        query = select(User).where(User.role == role.value, User.is_active.is_(True))
        if not scope.include_all_companies:
            query = query.where(User.company_id == scope.company_id)
        result = await self._db.execute(query.order_by(User.display_name, User.id))
        return list(result.scalars().all())
