from datetime import datetime

from sqlalchemy.dialects.postgresql import insert

from scorecard.models.refresh_token import UsedRefreshToken
from scorecard.repositories.base import BaseRepository


class TokenRepository(BaseRepository):
    """Durable record of exchanged refresh tokens."""

    async def mark_used(self, jti: str, user_id: str, expires_at: datetime) -> bool:
        """Record *jti* as spent and commit.

        Returns ``False`` when the token had already been recorded, which
        makes the insert the single point that decides a replay.
        """
        result = await self._db.execute(
            insert(UsedRefreshToken)
            .values(jti=jti, user_id=user_id, expires_at=expires_at)
            .on_conflict_do_nothing(index_elements=[UsedRefreshToken.jti])
            .returning(UsedRefreshToken.jti)
        )
        recorded = result.scalar_one_or_none() is not None
        await self._db.commit()
        return recorded
