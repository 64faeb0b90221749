import logging
from typing import Any, Dict, Optional

import httpx

from scorecard.core.exceptions import (
    ERRORS_BY_KIND,
    DuplicateError,
    ForbiddenError,
    ScorecardError,
    UnauthorizedError,
    UnavailableError,
    ValidationError,
)
from scorecard.schemas.auth import TokenPair

logger = logging.getLogger(__name__)

# Timeout for calls to the scorecard API (seconds).
_DEFAULT_TIMEOUT = 10.0

_ERRORS_BY_STATUS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    409: DuplicateError,
    422: ValidationError,
}


class ScorecardClient:
    """Async HTTP client for the scorecard API.

    Error responses are mapped back onto the same ``ScorecardError``
    classes the server raised, using the ``type`` field of the body and
    falling back to the status code.  Timeouts and transport failures
    surface as ``UnavailableError``.
    """

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._timeout = timeout
        self._transport = transport

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    def set_credentials(self, access_token: str, refresh_token: Optional[str]) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------

    async def create_evaluation(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST an evaluation; returns the summary (``duplicate`` may be true)."""
        return await self._request("POST", "/api/v1/evaluations", json=payload)

    async def refresh(self) -> TokenPair:
        """Rotate the credential pair using the stored refresh token.

        Raises:
            UnauthorizedError: No refresh token is held or it was rejected.
            UnavailableError: The API could not be reached.
        """
        if not self._refresh_token:
            raise UnauthorizedError("No refresh token available")
        body = await self._request(
            "POST",
            "/api/v1/auth/refresh",
            json={"refresh_token": self._refresh_token},
            authenticated=False,
        )
        tokens = TokenPair(**body)
        self.set_credentials(tokens.access_token, tokens.refresh_token)
        logger.info("Credentials refreshed")
        return tokens

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        headers = {}
        if authenticated and self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException:
            logger.error("Scorecard API timed out: %s %s", method, path)
            raise UnavailableError("Scorecard API timed out")
        except httpx.HTTPError as exc:
            logger.error("Scorecard API unreachable: %s %s: %s", method, path, exc)
            raise UnavailableError("Scorecard API unavailable")

        if response.is_success:
            return response.json()
        raise self._error_from(response)

    @staticmethod
    def _error_from(response: httpx.Response) -> ScorecardError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        detail = body.get("detail")
        if not isinstance(detail, str):
            detail = f"Scorecard API returned {response.status_code}"

        error_cls = ERRORS_BY_KIND.get(body.get("type"))
        if error_cls is None:
            error_cls = _ERRORS_BY_STATUS.get(response.status_code)
        if error_cls is None:
            error_cls = (
                UnavailableError
                if response.status_code >= 500 or response.status_code == 429
                else ValidationError
            )

        if error_cls is DuplicateError:
            return DuplicateError(detail, evaluation_id=body.get("evaluation_id"))
        return error_cls(detail)
