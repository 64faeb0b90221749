from typing import List

from fastapi import APIRouter, Depends

from scorecard.api.deps import get_authorizer, get_current_actor, get_scope
from scorecard.repositories.base import store_errors
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.subject import EvaluableSubject
from scorecard.services.authorization import HierarchicalAuthorizer

router = APIRouter(prefix="/subjects", tags=["Subjects"])


@router.get("/evaluable", response_model=List[EvaluableSubject])
async def list_evaluable_subjects(
    actor: Actor = Depends(get_current_actor),
    scope: ResolvedScope = Depends(get_scope),
    authorizer: HierarchicalAuthorizer = Depends(get_authorizer),
) -> List[EvaluableSubject]:
    """Users the current user may evaluate, each with the team that links them."""
    with store_errors("listing evaluable subjects"):
        return await authorizer.visible_subjects(actor, scope)
