import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from scorecard.core.exceptions import UnavailableError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Thin base class that holds the database session.

    Every concrete repository receives an ``AsyncSession`` at
    construction time so that multiple repositories can share the same
    unit-of-work within a single request.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self._db.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._db.rollback()


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate connectivity failures of the store into ``UnavailableError``.

    Constraint violations and programming errors are not transient and
    propagate unchanged.
    """
    try:
        yield
    except (OperationalError, InterfaceError, OSError) as exc:
        logger.error("Store unavailable during %s: %s", operation, exc)
        raise UnavailableError(f"Storage unavailable while {operation}")
