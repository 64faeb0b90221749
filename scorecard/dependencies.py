import logging
from typing import Optional

from fastapi import Depends, Header, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from scorecard.core.database import get_db
from scorecard.core.exceptions import UnauthorizedError
from scorecard.core.security import decode_access_token
from scorecard.repositories.base import store_errors
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.evaluation_repository import EvaluationRepository
from scorecard.repositories.form_repository import FormRepository
from scorecard.repositories.token_repository import TokenRepository
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.services.authorization import HierarchicalAuthorizer
from scorecard.services.company_context import CompanyContextResolver
from scorecard.services.scoring import ScoringEngine

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client(request: Request) -> Optional[Redis]:
    """Return the process-wide Redis client opened by the app lifespan."""
    return getattr(request.app.state, "redis", None)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_directory_repo(
    db: AsyncSession = Depends(get_db),
) -> DirectoryRepository:
    return DirectoryRepository(db)


async def get_form_repo(
    db: AsyncSession = Depends(get_db),
) -> FormRepository:
    return FormRepository(db)


async def get_evaluation_repo(
    db: AsyncSession = Depends(get_db),
) -> EvaluationRepository:
    return EvaluationRepository(db)


async def get_token_repo(
    db: AsyncSession = Depends(get_db),
) -> TokenRepository:
    return TokenRepository(db)


# ---------------------------------------------------------------------------
# Cache service factory
# ---------------------------------------------------------------------------


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
):
    """Build a :class:`CacheService` backed by the shared Redis client."""
    from scorecard.core.cache import CacheService

    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Identity and tenant scope
# ---------------------------------------------------------------------------


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    directory_repo: DirectoryRepository = Depends(get_directory_repo),
) -> Actor:
    """Resolve the bearer token into a fresh ``Actor`` from the directory."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    payload = decode_access_token(credentials.credentials)

    with store_errors("resolving the current user"):
        actor = await directory_repo.get_actor(payload["sub"])
    if actor is None or not actor.is_active:
        logger.warning("Token for missing or inactive user %s rejected", payload["sub"])
        raise UnauthorizedError("User not found or inactive")
    return actor


async def get_company_resolver() -> CompanyContextResolver:
    return CompanyContextResolver()


async def get_scope(
    company_id: Optional[str] = Query(None, alias="companyId"),
    x_company_id: Optional[str] = Header(None, alias="X-Company-Id"),
    actor: Actor = Depends(get_current_actor),
    resolver: CompanyContextResolver = Depends(get_company_resolver),
) -> ResolvedScope:
    """Resolve the request's company scope; query parameter wins over header."""
    requested = (company_id or "").strip() or (x_company_id or "").strip() or None
    return resolver.resolve(actor, requested)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_scoring_engine() -> ScoringEngine:
    return ScoringEngine()


async def get_authorizer(
    directory_repo: DirectoryRepository = Depends(get_directory_repo),
) -> HierarchicalAuthorizer:
    return HierarchicalAuthorizer(directory_repo)


async def get_form_selector():
    from scorecard.services.form_selection import FormSelector

    return FormSelector()


async def get_submission_service(
    scoring_engine: ScoringEngine = Depends(get_scoring_engine),
    authorizer: HierarchicalAuthorizer = Depends(get_authorizer),
    cache=Depends(get_cache_service),
    form_selector=Depends(get_form_selector),
):
    """Build an :class:`EvaluationSubmissionService` with injected dependencies."""
    from scorecard.services.evaluation_submission import EvaluationSubmissionService

    return EvaluationSubmissionService(
        scoring_engine=scoring_engine,
        authorizer=authorizer,
        cache=cache,
        form_selector=form_selector,
    )


async def get_history_service():
    from scorecard.services.evaluation_history import EvaluationHistoryService

    return EvaluationHistoryService()


async def get_token_service(
    cache=Depends(get_cache_service),
):
    """Build a :class:`TokenService` sharing the Redis-backed cache."""
    from scorecard.services.token_service import TokenService

    return TokenService(cache=cache)
