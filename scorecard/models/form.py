from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from scorecard.models.base import Base


class EvaluationForm(Base):
    """A versioned evaluation form for one (company, target role, customer type).

    Exactly one variant per tuple is active at a time.  Older versions are
    deactivated, never deleted, so historical evaluations stay
    interpretable against the form they were written on.
    """

    __tablename__ = "evaluation_forms"
    id = Column(String(64), primary_key=True)
    company_id = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    target_role = Column(String(40), nullable=False)
    customer_type = Column(String(20))
    is_active = Column(Boolean, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    categories = relationship(
        "FormCategory",
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormCategory.order",
    )

    __table_args__ = (
        Index(
            "uq_evaluation_forms_active",
            "company_id",
            "target_role",
            text("coalesce(customer_type, '')"),
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )


class FormCategory(Base):
    """A weighted group of behavior items within a form."""

    __tablename__ = "form_categories"
    id = Column(String(64), primary_key=True)
    form_id = Column(
        String(64),
        ForeignKey("evaluation_forms.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False, server_default="0")
    weight = Column(Float, nullable=False)

    form = relationship("EvaluationForm", back_populates="categories")
    items = relationship(
        "BehaviorItem",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="BehaviorItem.order",
    )

    __table_args__ = (
        CheckConstraint("weight > 0 AND weight <= 1", name="ck_category_weight"),
    )


class BehaviorItem(Base):
    """A single observable behavior rated 1–4."""

    __tablename__ = "behavior_items"
    id = Column(String(64), primary_key=True)
    category_id = Column(
        String(64),
        ForeignKey("form_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(300), nullable=False)
    order = Column(Integer, nullable=False, server_default="0")
    is_active = Column(Boolean, nullable=False, server_default="true")

    category = relationship("FormCategory", back_populates="items")
