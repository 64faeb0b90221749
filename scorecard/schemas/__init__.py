"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from scorecard.schemas.common import (
    Role as Role,
    CustomerType as CustomerType,
    Relation as Relation,
    SuccessResponse as SuccessResponse,
)

# Identity
from scorecard.schemas.actor import (
    Actor as Actor,
    ResolvedScope as ResolvedScope,
)

# Evaluation schemas
from scorecard.schemas.evaluation import (
    ItemScoreIn as ItemScoreIn,
    EvaluationRequest as EvaluationRequest,
    EvaluationSummary as EvaluationSummary,
    EvaluationItemOut as EvaluationItemOut,
    EvaluationOut as EvaluationOut,
)

# Subject / form / auth schemas
from scorecard.schemas.subject import EvaluableSubject as EvaluableSubject
from scorecard.schemas.form import (
    BehaviorItemDefinition as BehaviorItemDefinition,
    CategoryDefinition as CategoryDefinition,
    FormDefinition as FormDefinition,
)
from scorecard.schemas.auth import (
    RefreshRequest as RefreshRequest,
    TokenPair as TokenPair,
)
