"""Evaluation form definitions.

The same shapes describe database forms, built-in default forms, and the
``GET /forms/active`` response, and are what ``ScoringEngine`` consumes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from scorecard.schemas.common import Role


class BehaviorItemDefinition(BaseModel):
    id: str
    name: str
    order: int = 0


class CategoryDefinition(BaseModel):
    id: str
    name: str
    order: int = 0
    weight: float = Field(..., gt=0, le=1)
    items: List[BehaviorItemDefinition] = Field(default_factory=list)


class FormDefinition(BaseModel):
    """The form an evaluator fills in for a given subject role."""

    id: str
    name: str
    target_role: Role
    customer_type: Optional[str] = None
    is_default: bool = False
    categories: List[CategoryDefinition] = Field(default_factory=list)

    @classmethod
    def from_default(cls, data: Dict[str, Any]) -> "FormDefinition":
        """Build a definition from an entry of ``DEFAULT_FORMS``."""
        return cls(
            id=data["id"],
            name=data["name"],
            target_role=Role(data["target_role"]),
            customer_type=data["customer_type"],
            is_default=True,
            categories=[
                CategoryDefinition(
                    id=category["id"],
                    name=category["name"],
                    order=index,
                    weight=category["weight"],
                    items=[BehaviorItemDefinition(**item) for item in category["items"]],
                )
                for index, category in enumerate(data["categories"], start=1)
            ],
        )
