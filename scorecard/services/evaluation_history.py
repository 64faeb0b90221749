import logging
from typing import Dict, List, Set, Tuple

from scorecard.core.constants import COMPANY_HISTORY_ROLES, REGIONAL_ROLES
from scorecard.core.default_forms import DEFAULT_FORMS
from scorecard.models.evaluation import Evaluation
from scorecard.repositories.base import store_errors
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.evaluation_repository import EvaluationRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Role
from scorecard.schemas.evaluation import EvaluationItemOut, EvaluationOut

logger = logging.getLogger(__name__)


def _default_item_labels() -> Dict[str, Tuple[str, str]]:
    labels: Dict[str, Tuple[str, str]] = {}
    for form in DEFAULT_FORMS:
        for category in form["categories"]:
            for item in category["items"]:
                labels[item["id"]] = (item["name"], category["name"])
    return labels


_DEFAULT_ITEM_LABELS = _default_item_labels()


class EvaluationHistoryService:
    """Builds the "my evaluations" view for an actor.

    Visibility:

    - everyone sees evaluations they wrote or received;
    - regional managers also see evaluations written by or about the
      sales leads of the teams they manage;
    - directors and admins see every evaluation in the company scope.
    """

    def __init__(self, limit: int = 200) -> None:
        self._limit = limit

    async def list_for_actor(
        self,
        actor: Actor,
        scope: ResolvedScope,
        directory_repo: DirectoryRepository,
        evaluation_repo: EvaluationRepository,
    ) -> List[EvaluationOut]:
        with store_errors("listing evaluations"):
            if actor.role in COMPANY_HISTORY_ROLES:
                evaluations = await evaluation_repo.list_in_scope(scope, self._limit)
            else:
                involved = {actor.id}
                if actor.role in REGIONAL_ROLES:
                    involved |= await self._managed_sales_leads(actor, directory_repo)
                evaluations = await evaluation_repo.list_involving(
                    involved, involved, scope, self._limit
                )

            users = await directory_repo.get_users(
                {e.evaluator_id for e in evaluations} | {e.subject_id for e in evaluations}
            )
            labels = dict(_DEFAULT_ITEM_LABELS)
            labels.update(
                await evaluation_repo.get_item_labels(
                    item.behavior_item_id for e in evaluations for item in e.items
                )
            )

        logger.info(
            "Returning %d evaluation(s) to %s %s",
            len(evaluations),
            actor.role.value,
            actor.id,
        )
        return [self._to_out(evaluation, users, labels) for evaluation in evaluations]

    @staticmethod
    async def _managed_sales_leads(
        actor: Actor, directory_repo: DirectoryRepository
    ) -> Set[str]:
        member_ids: Set[str] = set()
        for team in await directory_repo.get_teams_managed_by(actor.id):
            member_ids.update(await directory_repo.get_team_members(team.id))
        member_ids.discard(actor.id)
        members = await directory_repo.get_users(member_ids)
        return {
            user_id
            for user_id, user in members.items()
            if user.role == Role.SALES_LEAD.value
        }

    @staticmethod
    def _to_out(
        evaluation: Evaluation,
        users: Dict,
        labels: Dict[str, Tuple[str, str]],
    ) -> EvaluationOut:
        evaluator = users.get(evaluation.evaluator_id)
        subject = users.get(evaluation.subject_id)
        items = []
        for item in evaluation.items:
            item_name, category_name = labels.get(
                item.behavior_item_id, (item.behavior_item_id, "")
            )
            items.append(
                EvaluationItemOut(
                    behavior_item_id=item.behavior_item_id,
                    behavior_item_name=item_name,
                    category_name=category_name,
                    rating=item.rating,
                    comment=item.comment,
                )
            )
        return EvaluationOut(
            id=evaluation.id,
            evaluator_id=evaluation.evaluator_id,
            evaluator_name=evaluator.display_name if evaluator else None,
            subject_id=evaluation.subject_id,
            subject_name=subject.display_name if subject else None,
            subject_role=Role(subject.role) if subject else None,
            company_id=evaluation.company_id,
            visit_date=evaluation.visit_date,
            customer_name=evaluation.customer_name or "",
            customer_type=evaluation.customer_type,
            location=evaluation.location,
            overall_comment=evaluation.overall_comment,
            overall_score=evaluation.overall_score,
            cluster_scores=evaluation.cluster_scores or {},
            created_at=evaluation.created_at,
            items=items,
        )
