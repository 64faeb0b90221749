from typing import Optional

from pydantic import BaseModel

from scorecard.schemas.common import Role


class EvaluableSubject(BaseModel):
    """A user the actor may evaluate, with the team that made them eligible."""

    id: str
    email: str
    display_name: str
    role: Role
    company_id: str
    is_active: bool = True
    team_id: Optional[str] = None
    team_name: Optional[str] = None
