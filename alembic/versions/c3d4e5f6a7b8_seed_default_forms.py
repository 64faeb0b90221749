"""seed default forms

Revision ID: c3d4e5f6a7b8
Revises: a1b2c3d4e5f6
Create Date: 2026-10-12 09:30:00.000000

Inserts the built-in evaluation forms under the ``__default__`` company
so evaluations written against a fallback form satisfy the ``form_id``
foreign key and the history view can label their items.  Every insert is
guarded by ON CONFLICT DO NOTHING, so the migration is idempotent.

The values are derived from ``scorecard.core.default_forms``.  Do NOT
edit them here; update DEFAULT_FORMS in that module instead.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "c3d4e5f6a7b8"
down_revision: Union[str, None] = "a1b2c3d4e5f6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


from scorecard.core.default_forms import DEFAULT_FORM_COMPANY_ID, DEFAULT_FORMS  # noqa: E402


def upgrade() -> None:
    conn = op.get_bind()
    for form in DEFAULT_FORMS:
        conn.execute(
            sa.text(
                "INSERT INTO evaluation_forms "
                "(id, company_id, name, target_role, customer_type, is_active) "
                "VALUES (:id, :company_id, :name, :target_role, :customer_type, true) "
                "ON CONFLICT (id) DO NOTHING"
            ),
            {
                "id": form["id"],
                "company_id": DEFAULT_FORM_COMPANY_ID,
                "name": form["name"],
                "target_role": form["target_role"],
                "customer_type": form["customer_type"],
            },
        )
        for order, category in enumerate(form["categories"], start=1):
            conn.execute(
                sa.text(
                    'INSERT INTO form_categories (id, form_id, name, "order", weight) '
                    "VALUES (:id, :form_id, :name, :order, :weight) "
                    "ON CONFLICT (id) DO NOTHING"
                ),
                {
                    "id": category["id"],
                    "form_id": form["id"],
                    "name": category["name"],
                    "order": order,
                    "weight": category["weight"],
                },
            )
            for item in category["items"]:
                conn.execute(
                    sa.text(
                        'INSERT INTO behavior_items (id, category_id, name, "order") '
                        "VALUES (:id, :category_id, :name, :order) "
                        "ON CONFLICT (id) DO NOTHING"
                    ),
                    {
                        "id": item["id"],
                        "category_id": category["id"],
                        "name": item["name"],
                        "order": item["order"],
                    },
                )


def downgrade() -> None:
    # Categories and items go with their forms (ON DELETE CASCADE)
    conn = op.get_bind()
    for form in DEFAULT_FORMS:
        conn.execute(
            sa.text("DELETE FROM evaluation_forms WHERE id = :id"), {"id": form["id"]}
        )
