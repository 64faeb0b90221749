import pytest

from scorecard.core.constants import (
    EVALUATION_RULES,
    OPERATIONAL_ROLES,
    RATING_MAX,
    RATING_MIN,
    ROLE_CHECK_CLAUSE,
    form_discriminator,
    normalize_customer_type,
)
from scorecard.core.default_forms import DEFAULT_FORMS, find_default_form
from scorecard.schemas.common import CustomerType, Relation, Role
from scorecard.schemas.form import FormDefinition


class TestConstantsConsistency:
    """Verify that constants, enums, and default data stay in sync."""

    def test_every_role_has_rules(self):
        for role in Role:
            assert role in EVALUATION_RULES

    def test_rules_only_target_operational_roles(self):
        for rules in EVALUATION_RULES.values():
            for rule in rules:
                assert rule.subject_role in OPERATIONAL_ROLES

    def test_rules_point_down_the_hierarchy(self):
        seniority = list(Role)
        for role, rules in EVALUATION_RULES.items():
            for rule in rules:
                assert seniority.index(rule.subject_role) > seniority.index(role)

    def test_salesperson_evaluates_nobody(self):
        assert EVALUATION_RULES[Role.SALESPERSON] == ()

    def test_team_rules_are_single_level(self):
        """Team-based rules may only reach the role directly below."""
        for role in (Role.REGIONAL_MANAGER, Role.REGIONAL_SALES_MANAGER):
            assert [r.subject_role for r in EVALUATION_RULES[role]] == [Role.SALES_LEAD]
            assert all(r.relation == Relation.TEAM_MANAGER for r in EVALUATION_RULES[role])

    def test_role_check_clause_lists_every_role(self):
        for role in Role:
            assert f"'{role.value}'" in ROLE_CHECK_CLAUSE

    def test_rating_range(self):
        assert (RATING_MIN, RATING_MAX) == (1, 4)


class TestCustomerType:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("high-share", CustomerType.HIGH_SHARE),
            ("HIGH_SHARE", CustomerType.HIGH_SHARE),
            (" High_Share ", CustomerType.HIGH_SHARE),
            ("low-share", CustomerType.LOW_SHARE),
            ("something", CustomerType.LOW_SHARE),
            ("", CustomerType.LOW_SHARE),
            (None, CustomerType.LOW_SHARE),
        ],
    )
    def test_normalize_customer_type(self, raw, expected):
        assert normalize_customer_type(raw) == expected

    def test_only_salesperson_forms_have_variants(self):
        assert form_discriminator(Role.SALES_LEAD, CustomerType.HIGH_SHARE) is None
        assert (
            form_discriminator(Role.SALESPERSON, CustomerType.HIGH_SHARE)
            == CustomerType.HIGH_SHARE
        )
        assert form_discriminator(Role.SALESPERSON, None) == CustomerType.LOW_SHARE


class TestDefaultForms:
    def test_default_forms_are_valid_definitions(self):
        for data in DEFAULT_FORMS:
            form = FormDefinition.from_default(data)
            assert form.is_default
            assert len(form.categories) == 4
            assert all(c.items for c in form.categories)

    def test_item_ids_are_globally_unique(self):
        ids = [
            item["id"]
            for form in DEFAULT_FORMS
            for category in form["categories"]
            for item in category["items"]
        ]
        assert len(ids) == len(set(ids))

    def test_lookup_by_role_and_customer_type(self):
        assert find_default_form(Role.SALESPERSON, CustomerType.LOW_SHARE)["id"] == (
            "default-salesperson-low-share"
        )
        assert find_default_form(Role.SALESPERSON, CustomerType.HIGH_SHARE)["id"] == (
            "default-salesperson-high-share"
        )
        assert find_default_form(Role.SALES_LEAD, None)["id"] == "default-sales-lead-coaching"
        assert find_default_form(Role.ADMIN, None) is None
