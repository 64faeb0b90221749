"""API-layer dependency functions.

Re-exports all dependency factories from ``scorecard.dependencies`` so that
endpoint modules only need to import from ``scorecard.api.deps``.
"""

from scorecard.dependencies import (
    # Repository factories
    get_directory_repo,
    get_form_repo,
    get_evaluation_repo,
    get_token_repo,
    # Identity and scope
    get_current_actor,
    get_company_resolver,
    get_scope,
    # Service factories
    get_scoring_engine,
    get_authorizer,
    get_form_selector,
    get_submission_service,
    get_history_service,
    get_token_service,
    get_cache_service,
    # Redis
    get_redis_client,
)

__all__ = [
    "get_directory_repo",
    "get_form_repo",
    "get_evaluation_repo",
    "get_token_repo",
    "get_current_actor",
    "get_company_resolver",
    "get_scope",
    "get_scoring_engine",
    "get_authorizer",
    "get_form_selector",
    "get_submission_service",
    "get_history_service",
    "get_token_service",
    "get_cache_service",
    "get_redis_client",
]
