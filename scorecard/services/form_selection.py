import logging
from typing import Optional

from scorecard.core.config import settings
from scorecard.core.constants import form_discriminator, normalize_customer_type
from scorecard.core.default_forms import find_default_form
from scorecard.core.exceptions import ValidationError
from scorecard.repositories.form_repository import FormRepository
from scorecard.schemas.common import Role
from scorecard.schemas.form import FormDefinition

logger = logging.getLogger(__name__)


class FormSelector:
    """Pick the evaluation form for a (company, subject role, customer type).

    The company's active form wins; otherwise the built-in default form is
    used when ``fallback_to_default`` is enabled.
    """

    def __init__(self, fallback_to_default: Optional[bool] = None) -> None:
        self._fallback = (
            fallback_to_default
            if fallback_to_default is not None
            else settings.FALLBACK_TO_DEFAULT_FORM
        )

    async def select(
        self,
        company_id: str,
        target_role: Role,
        raw_customer_type: Optional[str],
        form_repo: FormRepository,
    ) -> FormDefinition:
        """Return the form to use.

        Raises:
            ValidationError: No active form exists and fallback is disabled
                or has no default for the pair.
        """
        discriminator = form_discriminator(
            target_role, normalize_customer_type(raw_customer_type)
        )
        form = await form_repo.get_active_form(company_id, target_role, discriminator)
        if form is not None:
            return form

        if self._fallback:
            default = find_default_form(target_role, discriminator)
            if default is not None:
                logger.info(
                    "No %s form configured for %s; using built-in %s",
                    target_role.value,
                    company_id,
                    default["id"],
                )
                return FormDefinition.from_default(default)

        raise ValidationError(
            f"No active evaluation form for {target_role.value} in {company_id}"
        )
