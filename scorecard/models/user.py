from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from scorecard.core.constants import ROLE_CHECK_CLAUSE
from scorecard.models.base import Base


class User(Base):
    """A person known to the directory: evaluator, subject, or both.

    Rows are owned by directory management; the scorecard core only reads
    them.  ``role`` is one of the fixed ``Role`` values and ``company_id``
    is the tenant the user belongs to.
    """

    __tablename__ = "users"
    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    display_name = Column(String(200), nullable=False)
    role = Column(String(40), nullable=False)
    company_id = Column(String(64), nullable=False)
    is_active = Column(Boolean, nullable=False, server_default="true")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    memberships = relationship(
        "TeamMembership", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(ROLE_CHECK_CLAUSE, name="ck_user_role"),
        Index("ix_users_company_role", "company_id", "role"),
    )
