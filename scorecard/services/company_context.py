import logging
import re
from typing import Optional

from scorecard.core.config import settings
from scorecard.core.constants import ALL_COMPANIES, CROSS_COMPANY_ROLES
from scorecard.schemas.actor import Actor, ResolvedScope

logger = logging.getLogger(__name__)

_COMPANY_ID_RE = re.compile(r"^[a-z0-9_-]+$")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_company_id(raw_id: Optional[str]) -> Optional[str]:
    """Return a canonical company id, or ``None`` if *raw_id* is unusable.

    Trims, lower-cases and turns whitespace runs into ``_``; anything that
    still contains characters outside ``[a-z0-9_-]`` is rejected.
    """
    if not isinstance(raw_id, str):
        return None
    trimmed = raw_id.strip()
    if not trimmed:
        return None
    normalized = _WHITESPACE_RE.sub("_", trimmed.lower())
    if not _COMPANY_ID_RE.match(normalized):
        return None
    return normalized


class CompanyContextResolver:
    """Decide which tenant's data a request may touch.

    This is the single trust boundary for multi-tenant isolation: every
    downstream query is parameterised by the returned ``ResolvedScope``.

    - Super admins may pick any company, or ``"all"``; with no explicit
      choice they see every company.
    - Everyone else is pinned to their own company.  A caller-supplied
      company is silently ignored rather than rejected, so the response
      never reveals whether a foreign company exists.

    Never raises.
    """

    def __init__(self, default_company_id: Optional[str] = None) -> None:
        self._default_company_id = default_company_id or settings.DEFAULT_COMPANY_ID

    def resolve(
        self, actor: Actor, requested_company_id: Optional[str] = None
    ) -> ResolvedScope:
        if actor.role in CROSS_COMPANY_ROLES:
            requested = (requested_company_id or "").strip()
            if not requested or requested.lower() == ALL_COMPANIES:
                return ResolvedScope(company_id=None, include_all_companies=True)
            normalized = normalize_company_id(requested)
            if normalized is not None:
                return ResolvedScope(company_id=normalized)
            logger.warning(
                "Ignoring malformed company id %r from super admin %s",
                requested_company_id,
                actor.id,
            )
            return ResolvedScope(company_id=actor.company_id or self._default_company_id)

        if requested_company_id and requested_company_id != actor.company_id:
            logger.info(
                "Narrowing company %r to own company for %s %s",
                requested_company_id,
                actor.role.value,
                actor.id,
            )
        return ResolvedScope(company_id=actor.company_id or self._default_company_id)
