from scorecard.models.base import Base
from scorecard.models.user import User
from scorecard.models.team import Team, TeamMembership
from scorecard.models.form import EvaluationForm, FormCategory, BehaviorItem
from scorecard.models.evaluation import Evaluation, EvaluationItem
from scorecard.models.refresh_token import UsedRefreshToken

__all__ = [
    "Base",
    "User",
    "Team",
    "TeamMembership",
    "EvaluationForm",
    "FormCategory",
    "BehaviorItem",
    "Evaluation",
    "EvaluationItem",
    "UsedRefreshToken",
]
