"""Evaluation request / response schemas."""

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scorecard.schemas.common import Role, SuccessResponse


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ItemScoreIn(BaseModel):
    """One rated behavior item.

    The 1–4 range is checked by the submission pipeline so offline
    replays and API calls share the same validation and error message.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    behavior_item_id: str = Field(..., min_length=1)
    rating: int
    comment: Optional[str] = None


class EvaluationRequest(BaseModel):
    """Request body for POST /api/v1/evaluations.

    Accepts the camelCase keys posted by the web client as well as
    snake_case field names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subject_id: str = Field(..., min_length=1)
    visit_date: date
    customer_name: Optional[str] = Field(None, max_length=200)
    customer_type: Optional[str] = None
    location: Optional[str] = Field(None, max_length=200)
    overall_comment: Optional[str] = None
    items: List[ItemScoreIn] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class EvaluationSummary(SuccessResponse):
    """Returned by createEvaluation, for new and duplicate submissions alike."""

    id: UUID
    duplicate: bool = False
    evaluator_id: str
    subject_id: str
    company_id: str
    form_id: Optional[str] = None
    visit_date: date
    customer_name: str = ""
    customer_type: Optional[str] = None
    overall_score: Optional[float] = None
    cluster_scores: Dict[str, float] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class EvaluationItemOut(BaseModel):
    behavior_item_id: str
    behavior_item_name: str
    category_name: str
    rating: int
    comment: Optional[str] = None


class EvaluationOut(BaseModel):
    """An evaluation as shown in the history view."""

    id: UUID
    evaluator_id: str
    evaluator_name: Optional[str] = None
    subject_id: str
    subject_name: Optional[str] = None
    subject_role: Optional[Role] = None
    company_id: str
    visit_date: date
    customer_name: str = ""
    customer_type: Optional[str] = None
    location: Optional[str] = None
    overall_comment: Optional[str] = None
    overall_score: Optional[float] = None
    cluster_scores: Dict[str, float] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    items: List[EvaluationItemOut] = Field(default_factory=list)
