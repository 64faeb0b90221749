"""Request-scoped identity and tenant scope."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from scorecard.schemas.common import Role


class Actor(BaseModel):
    """The authenticated principal performing a request.

    Built from the directory on every request so role and activity reflect
    the current state, and frozen for the rest of the request.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    company_id: Optional[str] = None
    is_active: bool = True
    email: Optional[str] = None
    display_name: Optional[str] = None


class ResolvedScope(BaseModel):
    """The tenant(s) a request is allowed to read and write."""

    model_config = ConfigDict(frozen=True)

    company_id: Optional[str] = None
    include_all_companies: bool = False

    def includes(self, company_id: Optional[str]) -> bool:
        if self.include_all_companies:
            return True
        return company_id is not None and company_id == self.company_id
