import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy.exc import InterfaceError, OperationalError

from scorecard.core.cache import CacheService
from scorecard.core.config import settings
from scorecard.core.constants import RATING_MAX, RATING_MIN
from scorecard.core.exceptions import DuplicateError, ForbiddenError, ValidationError
from scorecard.models.evaluation import Evaluation
from scorecard.models.user import User
from scorecard.repositories.base import store_errors
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.evaluation_repository import (
    EvaluationRepository,
    dedup_key,
)
from scorecard.repositories.form_repository import FormRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Role
from scorecard.schemas.evaluation import EvaluationRequest
from scorecard.schemas.form import FormDefinition
from scorecard.services.authorization import HierarchicalAuthorizer
from scorecard.services.form_selection import FormSelector
from scorecard.services.scoring import ScoreResult, ScoringEngine

logger = logging.getLogger(__name__)

_DUPLICATE_KEY_PREFIX = "evaluation_duplicate"


class EvaluationSubmissionService:
    """Orchestrates the create-evaluation workflow.

    Dependencies are injected via the constructor so the class remains
    stateless and easily testable.  ``duplicate_window_seconds`` defaults
    to ``settings.DUPLICATE_WINDOW_SECONDS``.
    """

    def __init__(
        self,
        scoring_engine: ScoringEngine,
        authorizer: HierarchicalAuthorizer,
        cache: Optional[CacheService] = None,
        duplicate_window_seconds: Optional[int] = None,
        form_selector: Optional[FormSelector] = None,
    ) -> None:
        self._scoring_engine = scoring_engine
        self._authorizer = authorizer
        self._cache: CacheService = cache or CacheService()
        self._window = (
            duplicate_window_seconds
            if duplicate_window_seconds is not None
            else settings.DUPLICATE_WINDOW_SECONDS
        )
        self._forms = form_selector or FormSelector()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(
        self,
        actor: Actor,
        request: EvaluationRequest,
        scope: ResolvedScope,
        directory_repo: DirectoryRepository,
        form_repo: FormRepository,
        evaluation_repo: EvaluationRepository,
    ) -> Dict[str, Any]:
        """Execute the complete submission pipeline.

        Steps:
        1. Structural validation
        2. Duplicate suppression (Redis fast path, then DB under lock)
        3. Authorization against the resolved company scope
        4. Form selection (tenant form, else built-in default)
        5. Scoring
        6. Atomic persist of header and items

        Returns a dict suitable for building ``EvaluationSummary``.  A
        suppressed duplicate returns the existing evaluation with
        ``duplicate=True`` and writes nothing.

        Raises:
            ValidationError: Malformed input, unknown subject or items.
            ForbiddenError: The actor may not evaluate the subject.
            UnavailableError: The store could not be reached.
        """
        # 1. Structural validation
        self._validate(request)
        customer_name = (request.customer_name or "").strip()
        key = dedup_key(actor.id, request.subject_id, request.visit_date, customer_name)

        try:
            with store_errors("creating an evaluation"):
                # 2. Duplicate suppression
                await self._check_cached_duplicate(key)
                await evaluation_repo.lock_submission(key)
                await self._check_duplicate_in_store(
                    actor, request, customer_name, evaluation_repo
                )

                # 3. Authorization
                subject = await self._authorize(actor, request.subject_id, scope, directory_repo)

                # 4. Form selection
                company_id = self._company_for(scope, subject)
                form = await self._forms.select(
                    company_id, Role(subject.role), request.customer_type, form_repo
                )
                unknown = self._scoring_engine.unknown_items(
                    form, [item.behavior_item_id for item in request.items]
                )
                if unknown:
                    raise ValidationError(
                        f"Behavior items not part of form {form.id}: {', '.join(unknown)}"
                    )

                # 5. Scoring
                result = self._scoring_engine.score(form, request.items)
                if result.overall_score is None:
                    raise ValidationError("No scored items matched the evaluation form")

                # 6. Persist atomically
                evaluation = await self._persist(
                    actor, request, customer_name, company_id, form, result, evaluation_repo
                )
                await evaluation_repo.commit()
        except DuplicateError as exc:
            await self._rollback(evaluation_repo)
            existing = await self._load_existing(exc.evaluation_id, evaluation_repo)
            if existing is None:
                raise
            logger.warning(
                "Duplicate evaluation from %s for %s suppressed; returning %s",
                actor.id,
                request.subject_id,
                existing.id,
            )
            return self._summary(existing, duplicate=True)
        except Exception:
            await self._rollback(evaluation_repo)
            raise

        await self._cache.set(
            f"{_DUPLICATE_KEY_PREFIX}:{key}", str(evaluation.id), ttl=self._window
        )
        logger.info(
            "Saved evaluation %s by %s for %s (overall=%.2f)",
            evaluation.id,
            actor.id,
            request.subject_id,
            result.overall_score,
        )
        return self._summary(evaluation, duplicate=False)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _rollback(evaluation_repo: EvaluationRepository) -> None:
        """Roll back, tolerating a connection that is already gone."""
        try:
            await evaluation_repo.rollback()
        except (OperationalError, InterfaceError, OSError) as exc:
            logger.error("Rollback failed on a lost connection: %s", exc)

    @staticmethod
    def _validate(request: EvaluationRequest) -> None:
        if not request.subject_id or not request.subject_id.strip():
            raise ValidationError("subject_id is required")
        if not request.items:
            raise ValidationError(
                f"Evaluation must contain at least one item with a valid score "
                f"({RATING_MIN}-{RATING_MAX})"
            )
        seen = set()
        for item in request.items:
            if not RATING_MIN <= item.rating <= RATING_MAX:
                raise ValidationError(
                    f"All evaluation items must have a valid score between "
                    f"{RATING_MIN} and {RATING_MAX}. Item {item.behavior_item_id} "
                    f"has invalid score: {item.rating}"
                )
            if item.behavior_item_id in seen:
                raise ValidationError(
                    f"Behavior item {item.behavior_item_id} is scored more than once"
                )
            seen.add(item.behavior_item_id)

    async def _check_cached_duplicate(self, key: str) -> None:
        """Raise ``DuplicateError`` if Redis remembers this submission."""
        cached = await self._cache.get(f"{_DUPLICATE_KEY_PREFIX}:{key}")
        if cached is not None:
            raise DuplicateError(evaluation_id=cached)

    async def _check_duplicate_in_store(
        self,
        actor: Actor,
        request: EvaluationRequest,
        customer_name: str,
        evaluation_repo: EvaluationRepository,
    ) -> None:
        """Authoritative check; runs while the submission lock is held."""
        existing = await evaluation_repo.find_recent(
            actor.id,
            request.subject_id,
            request.visit_date,
            customer_name,
            self._window,
        )
        if existing is not None:
            raise DuplicateError(evaluation_id=str(existing.id))

    async def _authorize(
        self,
        actor: Actor,
        subject_id: str,
        scope: ResolvedScope,
        directory_repo: DirectoryRepository,
    ) -> User:
        subject = await directory_repo.get_user(subject_id)
        if subject is None:
            raise ValidationError(f"Invalid subject id: {subject_id}")
        if not await self._authorizer.can_evaluate(actor, subject_id, scope):
            logger.warning(
                "Forbidden: %s %s tried to evaluate %s",
                actor.role.value,
                actor.id,
                subject_id,
            )
            raise ForbiddenError("You are not permitted to evaluate this user")
        return subject

    @staticmethod
    def _company_for(scope: ResolvedScope, subject: User) -> str:
        # A super admin working across all companies writes into the
        # subject's own company.
        if scope.include_all_companies or not scope.company_id:
            return subject.company_id
        return scope.company_id

    @staticmethod
    async def _persist(
        actor: Actor,
        request: EvaluationRequest,
        customer_name: str,
        company_id: str,
        form: FormDefinition,
        result: ScoreResult,
        evaluation_repo: EvaluationRepository,
    ) -> Evaluation:
        evaluation_id = uuid4()
        header = {
            "id": evaluation_id,
            "evaluator_id": actor.id,
            "subject_id": request.subject_id,
            "company_id": company_id,
            "form_id": form.id,
            "visit_date": request.visit_date,
            "customer_name": customer_name,
            "customer_type": form.customer_type,
            "location": request.location,
            "overall_comment": request.overall_comment,
            "overall_score": result.overall_score,
            "cluster_scores": result.cluster_scores,
        }
        items = [
            {
                "id": uuid4(),
                "behavior_item_id": item.behavior_item_id,
                "rating": item.rating,
                "comment": item.comment or "",
            }
            for item in request.items
        ]
        return await evaluation_repo.insert_evaluation(header, items)

    @staticmethod
    async def _load_existing(
        evaluation_id: Optional[str], evaluation_repo: EvaluationRepository
    ) -> Optional[Evaluation]:
        if not evaluation_id:
            return None
        with store_errors("loading a duplicate evaluation"):
            return await evaluation_repo.get_by_id(evaluation_id)

    @staticmethod
    def _summary(evaluation: Evaluation, duplicate: bool) -> Dict[str, Any]:
        return {
            "id": evaluation.id,
            "duplicate": duplicate,
            "evaluator_id": evaluation.evaluator_id,
            "subject_id": evaluation.subject_id,
            "company_id": evaluation.company_id,
            "form_id": evaluation.form_id,
            "visit_date": evaluation.visit_date,
            "customer_name": evaluation.customer_name or "",
            "customer_type": evaluation.customer_type,
            "overall_score": evaluation.overall_score,
            "cluster_scores": evaluation.cluster_scores or {},
            "created_at": evaluation.created_at,
        }
