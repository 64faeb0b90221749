from typing import List

from fastapi import APIRouter, Depends, Request, Response

from scorecard.api.deps import (
    get_current_actor,
    get_directory_repo,
    get_evaluation_repo,
    get_form_repo,
    get_history_service,
    get_scope,
    get_submission_service,
)
from scorecard.core.config import settings
from scorecard.core.rate_limit import limiter
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.evaluation_repository import EvaluationRepository
from scorecard.repositories.form_repository import FormRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.evaluation import (
    EvaluationOut,
    EvaluationRequest,
    EvaluationSummary,
)
from scorecard.services.evaluation_history import EvaluationHistoryService
from scorecard.services.evaluation_submission import EvaluationSubmissionService

router = APIRouter(prefix="/evaluations", tags=["Evaluations"])


@router.post(
    "",
    response_model=EvaluationSummary,
    status_code=201,
)
@limiter.limit(settings.EVALUATION_RATE_LIMIT)
async def create_evaluation(
    request: Request,
    response: Response,
    request_body: EvaluationRequest,
    actor: Actor = Depends(get_current_actor),
    scope: ResolvedScope = Depends(get_scope),
    service: EvaluationSubmissionService = Depends(get_submission_service),
    directory_repo: DirectoryRepository = Depends(get_directory_repo),
    form_repo: FormRepository = Depends(get_form_repo),
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repo),
) -> EvaluationSummary:
    """Create an evaluation.

    Returns 201 for a new evaluation and 200 with ``duplicate: true``
    when an identical submission was stored moments ago.
    """
    result = await service.submit(
        actor=actor,
        request=request_body,
        scope=scope,
        directory_repo=directory_repo,
        form_repo=form_repo,
        evaluation_repo=evaluation_repo,
    )
    if result["duplicate"]:
        response.status_code = 200
    return EvaluationSummary(**result)


@router.get("/my", response_model=List[EvaluationOut])
async def list_my_evaluations(
    actor: Actor = Depends(get_current_actor),
    scope: ResolvedScope = Depends(get_scope),
    service: EvaluationHistoryService = Depends(get_history_service),
    directory_repo: DirectoryRepository = Depends(get_directory_repo),
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repo),
) -> List[EvaluationOut]:
    """Evaluations the current user wrote, received or supervises."""
    return await service.list_for_actor(actor, scope, directory_repo, evaluation_repo)
