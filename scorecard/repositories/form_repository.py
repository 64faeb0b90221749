from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from scorecard.models.form import EvaluationForm, FormCategory
from scorecard.repositories.base import BaseRepository
from scorecard.schemas.common import CustomerType, Role
from scorecard.schemas.form import (
    BehaviorItemDefinition,
    CategoryDefinition,
    FormDefinition,
)


class FormRepository(BaseRepository):
    """Encapsulates queries against the evaluation form tables."""

    async def get_active_form(
        self,
        company_id: str,
        target_role: Role,
        customer_type: Optional[CustomerType],
    ) -> Optional[FormDefinition]:
        """Return the active form for the tuple, or ``None``.

        Inactive behavior items are left out of the returned definition.
        """
        query = (
            select(EvaluationForm)
            .where(
                EvaluationForm.company_id == company_id,
                EvaluationForm.target_role == target_role.value,
                EvaluationForm.is_active.is_(True),
            )
            .options(
                selectinload(EvaluationForm.categories).selectinload(
                    FormCategory.items
                )
            )
        )
        if customer_type is None:
            query = query.where(EvaluationForm.customer_type.is_(None))
        else:
            query = query.where(EvaluationForm.customer_type == customer_type.value)

        result = await self._db.execute(query)
        form = result.scalars().first()
        if form is None:
            return None
        return self._to_definition(form)

    @staticmethod
    def _to_definition(form: EvaluationForm) -> FormDefinition:
        return FormDefinition(
            id=form.id,
            name=form.name,
            target_role=Role(form.target_role),
            customer_type=form.customer_type,
            categories=[
                CategoryDefinition(
                    id=category.id,
                    name=category.name,
                    order=category.order,
                    weight=category.weight,
                    items=[
                        BehaviorItemDefinition(id=item.id, name=item.name, order=item.order)
                        for item in category.items
                        if item.is_active
                    ],
                )
                for category in form.categories
            ],
        )
