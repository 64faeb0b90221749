from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_, select, text
from sqlalchemy.orm import selectinload

from scorecard.models.evaluation import Evaluation, EvaluationItem
from scorecard.models.form import BehaviorItem, FormCategory
from scorecard.repositories.base import BaseRepository
from scorecard.schemas.actor import ResolvedScope


def dedup_key(
    evaluator_id: str, subject_id: str, visit_date: date, customer_name: str
) -> str:
    """Return the string identifying "the same evaluation" for suppression."""
    return f"{evaluator_id}:{subject_id}:{visit_date.isoformat()}:{customer_name}"


class EvaluationRepository(BaseRepository):
    """Encapsulates every SQL query that touches the ``evaluations`` tables."""

    async def lock_submission(self, key: str) -> None:
        """Serialise concurrent submissions sharing *key*.

        Takes a PostgreSQL transaction-scoped advisory lock, released on
        commit or rollback, so the duplicate check and the insert that
        follows are atomic with respect to other writers of the same key.
        """
        await self._db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key}
        )

    async def find_recent(
        self,
        evaluator_id: str,
        subject_id: str,
        visit_date: date,
        customer_name: str,
        window_seconds: int,
    ) -> Optional[Evaluation]:
        """Return the newest matching evaluation created within the window.

        The window is measured against the database clock, the same clock
        that stamps ``created_at``.
        """
        result = await self._db.execute(
            select(Evaluation)
            .where(
                Evaluation.evaluator_id == evaluator_id,
                Evaluation.subject_id == subject_id,
                Evaluation.visit_date == visit_date,
                Evaluation.customer_name == customer_name,
                Evaluation.created_at >= func.now() - timedelta(seconds=window_seconds),
            )
            .order_by(Evaluation.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def get_by_id(self, evaluation_id: Any) -> Optional[Evaluation]:
        result = await self._db.execute(
            select(Evaluation).where(Evaluation.id == evaluation_id)
        )
        return result.scalar_one_or_none()

    async def insert_evaluation(
        self, header: Dict[str, Any], items: List[Dict[str, Any]]
    ) -> Evaluation:
        """Add the header and all of its items to the session as one unit.

        Nothing is visible to other transactions until the caller commits;
        a rollback discards header and items together.
        """
        evaluation = Evaluation(**header)
        evaluation.items = [EvaluationItem(**item) for item in items]
        self._db.add(evaluation)
        await self._db.flush()
        return evaluation

    async def list_involving(
        self,
        evaluator_ids: Iterable[str],
        subject_ids: Iterable[str],
        scope: ResolvedScope,
        limit: int = 200,
    ) -> List[Evaluation]:
        """Return evaluations written by or about the given users, newest first."""
        evaluator_ids = list(evaluator_ids)
        subject_ids = list(subject_ids)
        if not evaluator_ids and not subject_ids:
            return []
        query = select(Evaluation).where(
            or_(
                Evaluation.evaluator_id.in_(evaluator_ids),
                Evaluation.subject_id.in_(subject_ids),
            )
        )
        return await self._list(query, scope, limit)

    async def list_in_scope(
        self, scope: ResolvedScope, limit: int = 200
    ) -> List[Evaluation]:
        """Return every evaluation inside *scope*, newest first."""
        return await self._list(select(Evaluation), scope, limit)

    async def _list(self, query, scope: ResolvedScope, limit: int) -> List[Evaluation]:
        if not scope.include_all_companies:
            query = query.where(Evaluation.company_id == scope.company_id)
        result = await self._db.execute(
            query.options(selectinload(Evaluation.items))
            .order_by(Evaluation.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_item_labels(
        self, item_ids: Iterable[str]
    ) -> Dict[str, Tuple[str, str]]:
        """Return ``{behavior_item_id: (item_name, category_name)}``."""
        ids = list(set(item_ids))
        if not ids:
            return {}
        result = await self._db.execute(
            select(BehaviorItem.id, BehaviorItem.name, FormCategory.name)
            .join(FormCategory, FormCategory.id == BehaviorItem.category_id)
            .where(BehaviorItem.id.in_(ids))
        )
        return {row[0]: (row[1], row[2]) for row in result.all()}
