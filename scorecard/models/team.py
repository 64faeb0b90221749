from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from scorecard.models.base import Base


class Team(Base):
    """A sales team.  A team has at most one manager."""

    __tablename__ = "teams"
    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    company_id = Column(String(64), nullable=False)
    region_id = Column(String(64))
    manager_id = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    memberships = relationship(
        "TeamMembership", back_populates="team", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_teams_manager_id", "manager_id"),)


class TeamMembership(Base):
    """Many-to-many edge between users and teams."""

    __tablename__ = "user_teams"
    user_id = Column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    team_id = Column(
        String(64), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="memberships")
    team = relationship("Team", back_populates="memberships")

    __table_args__ = (Index("ix_user_teams_team_id", "team_id"),)
