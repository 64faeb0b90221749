"""In-memory directory and evaluation store used across the tests."""

import asyncio
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from scorecard.models.evaluation import Evaluation, EvaluationItem
from scorecard.models.team import Team
from scorecard.models.user import User
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Role


def make_user(
    user_id: str,
    role: Role,
    company_id: str = "company_metro",
    is_active: bool = True,
) -> User:
    return User(
        id=user_id,
        email=f"{user_id}@example.com",
        display_name=user_id.replace("_", " ").title(),
        role=role.value,
        company_id=company_id,
        is_active=is_active,
    )


def actor_for(user: User) -> Actor:
    return Actor(
        id=user.id,
        role=Role(user.role),
        company_id=user.company_id,
        is_active=user.is_active,
        email=user.email,
        display_name=user.display_name,
    )


class FakeDirectory:
    """Implements the read side of ``DirectoryRepository`` over dicts."""

    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.teams: Dict[str, Team] = {}
        self.members: Dict[str, Set[str]] = {}

    def add_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def add_team(
        self,
        team_id: str,
        manager_id: Optional[str] = None,
        members: Iterable[str] = (),
        company_id: str = "company_metro",
    ) -> Team:
        team = Team(
            id=team_id,
            name=team_id.replace("_", " ").title(),
            company_id=company_id,
            manager_id=manager_id,
        )
        self.teams[team_id] = team
        self.members[team_id] = set(members)
        return team

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        return {uid: self.users[uid] for uid in set(user_ids) if uid in self.users}

    async def get_actor(self, user_id: str) -> Optional[Actor]:
        user = self.users.get(user_id)
        return actor_for(user) if user is not None else None

    async def get_subject_role(self, user_id: str) -> Optional[Role]:
        user = self.users.get(user_id)
        return Role(user.role) if user is not None else None

    async def get_teams_managed_by(self, user_id: str) -> List[Team]:
        teams = [t for t in self.teams.values() if t.manager_id == user_id]
        return sorted(teams, key=lambda t: (t.name, t.id))

    async def get_teams_of(self, user_id: str) -> List[Team]:
        teams = [self.teams[tid] for tid, ids in self.members.items() if user_id in ids]
        return sorted(teams, key=lambda t: (t.name, t.id))

    async def get_team_members(self, team_id: str) -> List[str]:
        return sorted(self.members.get(team_id, ()))

    async def list_users(self, scope: ResolvedScope, role: Role) -> List[User]:
        return [
            user
            for user in self.users.values()
            if user.role == role.value and user.is_active and scope.includes(user.company_id)
        ]


def build_org() -> FakeDirectory:
    """Two teams under one regional manager plus a director and an admin.

    team_a: lead_a, sales_a1, sales_a2   (manager: rm_north)
    team_b: lead_b, sales_b1             (manager: rm_north)
    team_c: lead_c, sales_c1             (manager: rm_south)
    other company: lead_x, sales_x1 in team_x
    """
    directory = FakeDirectory()
    for user_id, role in (
        ("admin", Role.ADMIN),
        ("director", Role.SALES_DIRECTOR),
        ("rm_north", Role.REGIONAL_MANAGER),
        ("rm_south", Role.REGIONAL_SALES_MANAGER),
        ("lead_a", Role.SALES_LEAD),
        ("lead_b", Role.SALES_LEAD),
        ("lead_c", Role.SALES_LEAD),
        ("sales_a1", Role.SALESPERSON),
        ("sales_a2", Role.SALESPERSON),
        ("sales_b1", Role.SALESPERSON),
        ("sales_c1", Role.SALESPERSON),
    ):
        directory.add_user(make_user(user_id, role))
    directory.add_user(make_user("root", Role.SUPER_ADMIN, company_id="company_metro"))
    directory.add_user(make_user("lead_x", Role.SALES_LEAD, company_id="company_other"))
    directory.add_user(make_user("sales_x1", Role.SALESPERSON, company_id="company_other"))

    directory.add_team("team_a", "rm_north", ["lead_a", "sales_a1", "sales_a2"])
    directory.add_team("team_b", "rm_north", ["lead_b", "sales_b1"])
    directory.add_team("team_c", "rm_south", ["lead_c", "sales_c1"])
    directory.add_team(
        "team_x", None, ["lead_x", "sales_x1"], company_id="company_other"
    )
    return directory


class FakeEvaluationStore:
    """Shared rows plus per-key locks, standing in for PostgreSQL."""

    def __init__(self) -> None:
        self.rows: List[Evaluation] = []
        self.locks: Dict[str, asyncio.Lock] = {}


class FakeEvaluationRepository:
    """One per "session"; advisory locks are released on commit/rollback."""

    def __init__(self, store: FakeEvaluationStore) -> None:
        self._store = store
        self._held: List[asyncio.Lock] = []
        self._pending: List[Evaluation] = []

    async def lock_submission(self, key: str) -> None:
        lock = self._store.locks.setdefault(key, asyncio.Lock())
        await lock.acquire()
        self._held.append(lock)

    async def find_recent(self, evaluator_id, subject_id, visit_date, customer_name, window_seconds):
        now = datetime.now(timezone.utc)
        for row in reversed(self._store.rows):
            if (
                row.evaluator_id == evaluator_id
                and row.subject_id == subject_id
                and row.visit_date == visit_date
                and row.customer_name == customer_name
                and (now - row.created_at).total_seconds() <= window_seconds
            ):
                return row
        return None

    async def get_by_id(self, evaluation_id) -> Optional[Evaluation]:
        for row in self._store.rows:
            if str(row.id) == str(evaluation_id):
                return row
        return None

    async def insert_evaluation(self, header, items) -> Evaluation:
        evaluation = Evaluation(**header, created_at=datetime.now(timezone.utc))
        evaluation.items = [EvaluationItem(**item) for item in items]
        self._pending.append(evaluation)
        await asyncio.sleep(0)
        return evaluation

    async def commit(self) -> None:
        self._store.rows.extend(self._pending)
        self._pending = []
        self._release()

    async def rollback(self) -> None:
        self._pending = []
        self._release()

    def _release(self) -> None:
        for lock in self._held:
            lock.release()
        self._held = []

    async def list_in_scope(self, scope: ResolvedScope, limit: int = 200) -> List[Evaluation]:
        rows = [r for r in self._store.rows if scope.includes(r.company_id)]
        return list(reversed(rows))[:limit]

    async def list_involving(
        self, evaluator_ids, subject_ids, scope: ResolvedScope, limit: int = 200
    ) -> List[Evaluation]:
        evaluator_ids, subject_ids = set(evaluator_ids), set(subject_ids)
        rows = [
            r
            for r in self._store.rows
            if scope.includes(r.company_id)
            and (r.evaluator_id in evaluator_ids or r.subject_id in subject_ids)
        ]
        return list(reversed(rows))[:limit]

    async def get_item_labels(self, item_ids) -> Dict:
        return {}


class FakeTokenRepository:
    """Spent refresh-token ids, shared across "requests" like the real table."""

    def __init__(self) -> None:
        self.used: Dict[str, str] = {}

    async def mark_used(self, jti: str, user_id: str, expires_at: datetime) -> bool:
        if jti in self.used:
            return False
        self.used[jti] = user_id
        return True
