from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple

from scorecard.schemas.common import CustomerType, Relation, Role


class EvaluationRule(NamedTuple):
    """One row of the evaluation rule table."""

    subject_role: Role
    relation: Relation


ROLE_CHECK_CLAUSE: str = f"role IN ({', '.join(repr(r.value) for r in Role)})"

OPERATIONAL_ROLES: FrozenSet[Role] = frozenset({Role.SALES_LEAD, Role.SALESPERSON})

# Evaluations flow one level down the hierarchy; the top three roles may
# evaluate either operational role anywhere in their company scope.
_COMPANY_WIDE: Tuple[EvaluationRule, ...] = (
    EvaluationRule(Role.SALES_LEAD, Relation.COMPANY),
    EvaluationRule(Role.SALESPERSON, Relation.COMPANY),
)

EVALUATION_RULES: Dict[Role, Tuple[EvaluationRule, ...]] = {
    Role.SUPER_ADMIN: _COMPANY_WIDE,
    Role.ADMIN: _COMPANY_WIDE,
    Role.SALES_DIRECTOR: _COMPANY_WIDE,
    Role.REGIONAL_SALES_MANAGER: (
        EvaluationRule(Role.SALES_LEAD, Relation.TEAM_MANAGER),
    ),
    Role.REGIONAL_MANAGER: (EvaluationRule(Role.SALES_LEAD, Relation.TEAM_MANAGER),),
    Role.SALES_LEAD: (EvaluationRule(Role.SALESPERSON, Relation.TEAM_MEMBER),),
    Role.SALESPERSON: (),
}

# History visibility: these roles see every evaluation in scope, regional
# managers additionally see evaluations by and for their teams' sales leads.
COMPANY_HISTORY_ROLES: FrozenSet[Role] = frozenset(
    {Role.SUPER_ADMIN, Role.ADMIN, Role.SALES_DIRECTOR}
)
REGIONAL_ROLES: FrozenSet[Role] = frozenset(
    {Role.REGIONAL_SALES_MANAGER, Role.REGIONAL_MANAGER}
)

# Roles allowed to pick another tenant via ``companyId``
CROSS_COMPANY_ROLES: FrozenSet[Role] = frozenset({Role.SUPER_ADMIN})
ALL_COMPANIES: str = "all"

RATING_MIN: int = 1
RATING_MAX: int = 4

# Only salesperson forms come in customer-type variants
ROLES_WITH_FORM_VARIANTS: FrozenSet[Role] = frozenset({Role.SALESPERSON})

_HIGH_SHARE_ALIASES: FrozenSet[str] = frozenset({"high-share", "high_share"})


def normalize_customer_type(raw: Optional[str]) -> CustomerType:
    """Map the loose spellings clients send onto the form discriminator."""
    if raw and raw.strip().lower() in _HIGH_SHARE_ALIASES:
        return CustomerType.HIGH_SHARE
    return CustomerType.LOW_SHARE


def form_discriminator(
    target_role: Role, customer_type: Optional[CustomerType]
) -> Optional[CustomerType]:
    """Return the discriminator to use when selecting a form for *target_role*."""
    if target_role not in ROLES_WITH_FORM_VARIANTS:
        return None
    return customer_type or CustomerType.LOW_SHARE
