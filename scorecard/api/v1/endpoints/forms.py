from typing import Optional

from fastapi import APIRouter, Depends, Query

from scorecard.api.deps import get_current_actor, get_form_repo, get_form_selector, get_scope
from scorecard.core.config import settings
from scorecard.repositories.base import store_errors
from scorecard.repositories.form_repository import FormRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Role
from scorecard.schemas.form import FormDefinition
from scorecard.services.form_selection import FormSelector

router = APIRouter(prefix="/forms", tags=["Forms"])


@router.get("/active", response_model=FormDefinition)
async def get_active_form(
    target_role: Role = Query(..., alias="targetRole"),
    customer_type: Optional[str] = Query(None, alias="customerType"),
    actor: Actor = Depends(get_current_actor),
    scope: ResolvedScope = Depends(get_scope),
    selector: FormSelector = Depends(get_form_selector),
    form_repo: FormRepository = Depends(get_form_repo),
) -> FormDefinition:
    """Return the form to fill in for a subject of ``targetRole``."""
    company_id = scope.company_id or actor.company_id or settings.DEFAULT_COMPANY_ID
    with store_errors("loading the active form"):
        return await selector.select(company_id, target_role, customer_type, form_repo)
