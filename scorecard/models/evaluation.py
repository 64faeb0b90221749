from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from scorecard.models.base import Base


class Evaluation(Base):
    """One manager's scored observation of a subordinate's customer visit.

    Written exactly once together with its items and never updated;
    corrections are new evaluations.  ``overall_score`` stays on the 1–4
    rating scale and is ``NULL`` only if nothing could be scored.
    """

    __tablename__ = "evaluations"
    id = Column(UUID(as_uuid=True), primary_key=True)
    evaluator_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    subject_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    company_id = Column(String(64), nullable=False)
    form_id = Column(String(64), ForeignKey("evaluation_forms.id"))
    visit_date = Column(Date, nullable=False)
    customer_name = Column(String(200), nullable=False, server_default="")
    customer_type = Column(String(20))
    location = Column(String(200))
    overall_comment = Column(Text)
    overall_score = Column(Float)
    cluster_scores = Column(JSONB, nullable=False, server_default="{}")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "EvaluationItem", back_populates="evaluation", cascade="all, delete-orphan"
    )

    __table_args__ = (
        # Duplicate suppression lookup; the window check itself is done in
        # the insert transaction under an advisory lock.
        Index(
            "ix_evaluations_dedup",
            "evaluator_id",
            "subject_id",
            "visit_date",
            "customer_name",
            "created_at",
        ),
        Index("ix_evaluations_company_created", "company_id", "created_at"),
        CheckConstraint(
            "overall_score IS NULL OR overall_score BETWEEN 1 AND 4",
            name="ck_overall_score_range",
        ),
    )


class EvaluationItem(Base):
    """A single behavior item rating belonging to an evaluation."""

    __tablename__ = "evaluation_items"
    id = Column(UUID(as_uuid=True), primary_key=True)
    evaluation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("evaluations.id", ondelete="CASCADE"),
        nullable=False,
    )
    behavior_item_id = Column(String(64), nullable=False)
    rating = Column(SmallInteger, nullable=False)
    comment = Column(Text)

    evaluation = relationship("Evaluation", back_populates="items")

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 4", name="ck_rating_range"),
        Index("ix_evaluation_items_evaluation_id", "evaluation_id"),
    )
