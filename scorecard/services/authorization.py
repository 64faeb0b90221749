import logging
from typing import Dict, List, Optional, Tuple

from scorecard.core.constants import EVALUATION_RULES, EvaluationRule
from scorecard.core.exceptions import ValidationError
from scorecard.models.team import Team
from scorecard.models.user import User
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Relation, Role
from scorecard.schemas.subject import EvaluableSubject

logger = logging.getLogger(__name__)


class HierarchicalAuthorizer:
    """Decide who may evaluate whom, driven by ``EVALUATION_RULES``.

    Each evaluator role maps to zero or more ``(subject_role, relation)``
    rules:

    - ``TEAM_MEMBER``  – subject shares a team with the evaluator
    - ``TEAM_MANAGER`` – subject belongs to a team the evaluator manages
    - ``COMPANY``      – any subject inside the resolved company scope

    ``can_evaluate`` and ``visible_subjects`` are both built on
    ``_subject_qualifies`` and ``_relation_teams``, so a listed subject
    always passes ``can_evaluate`` and vice versa.

    A denial is a ``False`` / a missing entry, never an exception;
    ``ValidationError`` is raised only for an unknown role or a request
    without a company scope.
    """

    def __init__(self, directory: DirectoryRepository) -> None:
        self._directory = directory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def can_evaluate(
        self, evaluator: Actor, subject_id: str, scope: ResolvedScope
    ) -> bool:
        rules = self._rules_for(evaluator, scope)
        if not rules or not evaluator.is_active:
            return False

        subject = await self._directory.get_user(subject_id)
        if subject is None:
            return False

        for rule in rules:
            allowed, _ = await self._match(evaluator, scope, rule, subject)
            if allowed:
                return True

        logger.info(
            "%s %s may not evaluate %s (%s)",
            evaluator.role.value,
            evaluator.id,
            subject.id,
            subject.role,
        )
        return False

    async def visible_subjects(
        self, evaluator: Actor, scope: ResolvedScope
    ) -> List[EvaluableSubject]:
        """Return every user *evaluator* may evaluate, each with its team."""
        rules = self._rules_for(evaluator, scope)
        if not rules or not evaluator.is_active:
            return []

        found: Dict[str, EvaluableSubject] = {}
        for rule in rules:
            teams = await self._relation_teams(evaluator, rule)

            if teams is None:
                candidates = await self._directory.list_users(scope, rule.subject_role)
                for user in candidates:
                    if user.id in found:
                        continue
                    if not self._subject_qualifies(evaluator, scope, rule, user):
                        continue
                    user_teams = await self._directory.get_teams_of(user.id)
                    found[user.id] = self._to_subject(
                        user, user_teams[0] if user_teams else None
                    )
                continue

            for team in teams:
                member_ids = await self._directory.get_team_members(team.id)
                members = await self._directory.get_users(member_ids)
                for member_id in member_ids:
                    user = members.get(member_id)
                    if user is None or user.id in found:
                        continue
                    if not self._subject_qualifies(evaluator, scope, rule, user):
                        continue
                    found[user.id] = self._to_subject(user, team)

        logger.info(
            "%d evaluable subject(s) for %s %s",
            len(found),
            evaluator.role.value,
            evaluator.id,
        )
        return list(found.values())

    # ------------------------------------------------------------------
    # Shared predicate
    # ------------------------------------------------------------------

    @staticmethod
    def _rules_for(
        evaluator: Actor, scope: Optional[ResolvedScope]
    ) -> Tuple[EvaluationRule, ...]:
        if scope is None or (not scope.include_all_companies and not scope.company_id):
            raise ValidationError("Company scope is required")
        try:
            role = Role(evaluator.role)
        except ValueError:
            raise ValidationError(f"Unknown role: {evaluator.role}")
        return EVALUATION_RULES.get(role, ())

    @staticmethod
    def _subject_qualifies(
        evaluator: Actor, scope: ResolvedScope, rule: EvaluationRule, subject: User
    ) -> bool:
        return (
            subject.id != evaluator.id
            and subject.role == rule.subject_role.value
            and bool(subject.is_active)
            and scope.includes(subject.company_id)
        )

    async def _relation_teams(
        self, evaluator: Actor, rule: EvaluationRule
    ) -> Optional[List[Team]]:
        """Teams through which *rule* can hold, or ``None`` if company-wide."""
        if rule.relation == Relation.COMPANY:
            return None
        if rule.relation == Relation.TEAM_MANAGER:
            return await self._directory.get_teams_managed_by(evaluator.id)
        if rule.relation == Relation.TEAM_MEMBER:
            return await self._directory.get_teams_of(evaluator.id)
        raise ValidationError(f"Unknown relation: {rule.relation}")

    async def _match(
        self,
        evaluator: Actor,
        scope: ResolvedScope,
        rule: EvaluationRule,
        subject: User,
    ) -> Tuple[bool, Optional[Team]]:
        if not self._subject_qualifies(evaluator, scope, rule, subject):
            return False, None
        teams = await self._relation_teams(evaluator, rule)
        if teams is None:
            return True, None
        for team in teams:
            if subject.id in await self._directory.get_team_members(team.id):
                return True, team
        return False, None

    @staticmethod
    def _to_subject(user: User, team: Optional[Team]) -> EvaluableSubject:
        return EvaluableSubject(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=Role(user.role),
            company_id=user.company_id,
            is_active=user.is_active,
            team_id=team.id if team is not None else None,
            team_name=team.name if team is not None else None,
        )
