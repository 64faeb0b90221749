from fastapi import APIRouter, Depends

from scorecard.api.deps import get_directory_repo, get_token_repo, get_token_service
from scorecard.repositories.directory_repository import DirectoryRepository
from scorecard.repositories.token_repository import TokenRepository
from scorecard.schemas.auth import RefreshRequest, TokenPair
from scorecard.services.token_service import TokenService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/refresh", response_model=TokenPair)
async def refresh_credentials(
    request_body: RefreshRequest,
    service: TokenService = Depends(get_token_service),
    directory_repo: DirectoryRepository = Depends(get_directory_repo),
    token_repo: TokenRepository = Depends(get_token_repo),
) -> TokenPair:
    """Exchange a refresh token for a new access/refresh pair.

    The presented refresh token is revoked; replaying it returns 401.
    """
    return await service.refresh(request_body.refresh_token, directory_repo, token_repo)
