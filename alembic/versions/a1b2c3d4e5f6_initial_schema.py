"""initial schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-12 09:00:00.000000

Directory tables (users, teams, user_teams), evaluation forms and
evaluations.  The partial unique index on ``evaluation_forms`` allows one
active variant per (company, target role, customer type).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from scorecard.core.constants import ROLE_CHECK_CLAUSE

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(40), nullable=False),
        sa.Column("company_id", sa.String(64), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint(ROLE_CHECK_CLAUSE, name="ck_user_role"),
    )
    op.create_index("ix_users_company_role", "users", ["company_id", "role"])

    op.create_table(
        "teams",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("company_id", sa.String(64), nullable=False),
        sa.Column("region_id", sa.String(64)),
        sa.Column(
            "manager_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("ix_teams_manager_id", "teams", ["manager_id"])

    op.create_table(
        "user_teams",
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "team_id",
            sa.String(64),
            sa.ForeignKey("teams.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("ix_user_teams_team_id", "user_teams", ["team_id"])

    op.create_table(
        "evaluation_forms",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("company_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("target_role", sa.String(40), nullable=False),
        sa.Column("customer_type", sa.String(20)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index(
        "uq_evaluation_forms_active",
        "evaluation_forms",
        ["company_id", "target_role", sa.text("coalesce(customer_type, '')")],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "form_categories",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "form_id",
            sa.String(64),
            sa.ForeignKey("evaluation_forms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("weight", sa.Float, nullable=False),
        sa.CheckConstraint("weight > 0 AND weight <= 1", name="ck_category_weight"),
    )

    op.create_table(
        "behavior_items",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "category_id",
            sa.String(64),
            sa.ForeignKey("form_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
    )

    op.create_table(
        "evaluations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "evaluator_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "subject_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("company_id", sa.String(64), nullable=False),
        sa.Column("form_id", sa.String(64), sa.ForeignKey("evaluation_forms.id")),
        sa.Column("visit_date", sa.Date, nullable=False),
        sa.Column(
            "customer_name", sa.String(200), nullable=False, server_default=""
        ),
        sa.Column("customer_type", sa.String(20)),
        sa.Column("location", sa.String(200)),
        sa.Column("overall_comment", sa.Text),
        sa.Column("overall_score", sa.Float),
        sa.Column(
            "cluster_scores",
            postgresql.JSONB,
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint(
            "overall_score IS NULL OR overall_score BETWEEN 1 AND 4",
            name="ck_overall_score_range",
        ),
    )
    op.create_index(
        "ix_evaluations_dedup",
        "evaluations",
        ["evaluator_id", "subject_id", "visit_date", "customer_name", "created_at"],
    )
    op.create_index(
        "ix_evaluations_company_created", "evaluations", ["company_id", "created_at"]
    )

    op.create_table(
        "evaluation_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "evaluation_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("evaluations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("behavior_item_id", sa.String(64), nullable=False),
        sa.Column("rating", sa.SmallInteger, nullable=False),
        sa.Column("comment", sa.Text),
        sa.CheckConstraint("rating BETWEEN 1 AND 4", name="ck_rating_range"),
    )
    op.create_index(
        "ix_evaluation_items_evaluation_id", "evaluation_items", ["evaluation_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_evaluation_items_evaluation_id", table_name="evaluation_items")
    op.drop_table("evaluation_items")
    op.drop_index("ix_evaluations_company_created", table_name="evaluations")
    op.drop_index("ix_evaluations_dedup", table_name="evaluations")
    op.drop_table("evaluations")
    op.drop_table("behavior_items")
    op.drop_table("form_categories")
    op.drop_index("uq_evaluation_forms_active", table_name="evaluation_forms")
    op.drop_table("evaluation_forms")
    op.drop_index("ix_user_teams_team_id", table_name="user_teams")
    op.drop_table("user_teams")
    op.drop_index("ix_teams_manager_id", table_name="teams")
    op.drop_table("teams")
    op.drop_index("ix_users_company_role", table_name="users")
    op.drop_table("users")
