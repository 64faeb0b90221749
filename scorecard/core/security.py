"""JWT helpers for access and refresh credentials.

Access tokens carry the actor's id, role and company; refresh tokens carry
only the id, the company and a unique ``jti`` so each one can be spent
exactly once (see ``TokenService``).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

import jwt

from scorecard.core.config import settings
from scorecard.core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def create_access_token(
    user_id: str,
    role: str,
    company_id: Optional[str],
    email: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "companyId": company_id,
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(
    user_id: str,
    company_id: Optional[str],
    now: Optional[datetime] = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "companyId": company_id,
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid4().hex,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS),
    }
    return jwt.encode(
        payload, settings.JWT_REFRESH_SECRET, algorithm=settings.JWT_ALGORITHM
    )


def _decode(token: str, secret: str, expected_type: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError(f"{expected_type.capitalize()} token expired")
    except jwt.InvalidTokenError as exc:
        logger.info("Token verification failed: %s", exc)
        raise UnauthorizedError(f"Invalid {expected_type} token")

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise UnauthorizedError(f"Invalid {expected_type} token")
    return payload


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify an access token and return its claims.

    Raises:
        UnauthorizedError: If the token is expired, forged or malformed.
    """
    return _decode(token, settings.JWT_SECRET, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    """Verify a refresh token and return its claims.

    Raises:
        UnauthorizedError: If the token is expired, forged or malformed.
    """
    return _decode(token, settings.JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)


def seconds_until_expiry(payload: Dict[str, Any]) -> int:
    """Return how long the decoded token remains valid (at least 1 s)."""
    remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)
