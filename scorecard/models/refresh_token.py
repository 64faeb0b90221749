from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.sql import func

from scorecard.models.base import Base


class UsedRefreshToken(Base):
    """A refresh token that has already been exchanged.

    ``jti`` is the token's unique id.  Rows can be purged once
    ``expires_at`` has passed because the token would be rejected anyway.
    """

    __tablename__ = "used_refresh_tokens"
    jti = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (Index("ix_used_refresh_tokens_expires_at", "expires_at"),)
