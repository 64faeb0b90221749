from enum import Enum
from pydantic import BaseModel


class Role(str, Enum):
    """Organisational roles, most senior first."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    SALES_DIRECTOR = "SALES_DIRECTOR"
    REGIONAL_SALES_MANAGER = "REGIONAL_SALES_MANAGER"
    REGIONAL_MANAGER = "REGIONAL_MANAGER"
    SALES_LEAD = "SALES_LEAD"
    SALESPERSON = "SALESPERSON"


class CustomerType(str, Enum):
    LOW_SHARE = "LOW_SHARE"
    HIGH_SHARE = "HIGH_SHARE"


class Relation(str, Enum):
    """How an evaluator is connected to an eligible subject."""

    TEAM_MEMBER = "team_member"  # co-member of a team the evaluator belongs to
    TEAM_MANAGER = "team_manager"  # member of a team the evaluator manages
    COMPANY = "company"  # anyone in the resolved company scope


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
