import logging
from datetime import datetime, timezone
from typing import Optional

from scorecard.core.cache import CacheService
from scorecard.core.exceptions import UnauthorizedError, UnavailableError
from scorecard.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    seconds_until_expiry,
)
from scorecard.repositories.base import store_errors
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.token_repository import TokenRepository
from scorecard.schemas.actor import Actor
from scorecard.schemas.auth import TokenPair

logger = logging.getLogger(__name__)

_USED_REFRESH_PREFIX = "refresh_used"


class TokenService:
    """Issues credential pairs and rotates refresh tokens.

    Every refresh token is single use.  Its ``jti`` is written to the
    ``used_refresh_tokens`` table, and that insert decides whether the
    token was already spent.  Redis holds the same claim until the token
    expires so replays are turned away before touching the database.
    """

    def __init__(self, cache: Optional[CacheService] = None) -> None:
        self._cache: CacheService = cache or CacheService()

    @staticmethod
    def issue(actor: Actor) -> TokenPair:
        return TokenPair(
            access_token=create_access_token(
                actor.id, actor.role.value, actor.company_id, actor.email
            ),
            refresh_token=create_refresh_token(actor.id, actor.company_id),
        )

    async def refresh(
        self,
        refresh_token: str,
        directory_repo: DirectoryRepository,
        token_repo: TokenRepository,
    ) -> TokenPair:
        """Exchange a refresh token for a fresh pair.

        Raises:
            UnauthorizedError: The token is invalid, expired, already used,
                or belongs to a missing or deactivated user.
            UnavailableError: The directory or token store could not be
                reached.  The token stays usable for a later attempt.
        """
        payload = decode_refresh_token(refresh_token)
        jti = payload.get("jti")
        if not jti:
            raise UnauthorizedError("Invalid refresh token")

        cache_key = f"{_USED_REFRESH_PREFIX}:{jti}"
        claimed = await self._cache.claim(cache_key, seconds_until_expiry(payload))
        if claimed is False:
            logger.warning("Replayed refresh token for user %s", payload["sub"])
            raise UnauthorizedError("Refresh token already used")

        try:
            with store_errors("refreshing credentials"):
                actor = await directory_repo.get_actor(payload["sub"])
                recorded = await token_repo.mark_used(
                    jti,
                    payload["sub"],
                    datetime.fromtimestamp(payload["exp"], timezone.utc),
                )
        except UnavailableError:
            if claimed:
                await self._cache.delete(cache_key)
            raise

        if not recorded:
            logger.warning("Replayed refresh token for user %s", payload["sub"])
            raise UnauthorizedError("Refresh token already used")
        if actor is None or not actor.is_active:
            logger.warning("Refresh denied for missing or inactive user %s", payload["sub"])
            raise UnauthorizedError("User not found or inactive")

        logger.info("Rotated credentials for %s", actor.id)
        return self.issue(actor)
