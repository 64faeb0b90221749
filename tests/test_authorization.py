import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from scorecard.core.exceptions import ValidationError
from scorecard.schemas.actor import Actor, ResolvedScope
from scorecard.schemas.common import Role
from scorecard.services.authorization import HierarchicalAuthorizer
from tests.fakes import FakeDirectory, actor_for, build_org, make_user

METRO = ResolvedScope(company_id="company_metro")
ALL = ResolvedScope(company_id=None, include_all_companies=True)


@pytest.fixture
def directory() -> FakeDirectory:
    return build_org()


@pytest.fixture
def authorizer(directory) -> HierarchicalAuthorizer:
    return HierarchicalAuthorizer(directory)


def _actor(directory: FakeDirectory, user_id: str) -> Actor:
    return actor_for(directory.users[user_id])


class TestCanEvaluate:
    @pytest.mark.asyncio
    async def test_sales_lead_evaluates_own_team_salesperson(self, directory, authorizer):
        assert await authorizer.can_evaluate(_actor(directory, "lead_a"), "sales_a1", METRO)

    @pytest.mark.asyncio
    async def test_sales_lead_cannot_evaluate_other_team(self, directory, authorizer):
        assert not await authorizer.can_evaluate(_actor(directory, "lead_a"), "sales_b1", METRO)

    @pytest.mark.asyncio
    async def test_sales_lead_cannot_evaluate_peer_lead(self, directory, authorizer):
        assert not await authorizer.can_evaluate(_actor(directory, "lead_a"), "lead_b", METRO)

    @pytest.mark.asyncio
    async def test_salesperson_never_evaluates(self, directory, authorizer):
        actor = _actor(directory, "sales_a1")
        for subject_id in directory.users:
            assert not await authorizer.can_evaluate(actor, subject_id, METRO)

    @pytest.mark.asyncio
    async def test_regional_manager_evaluates_leads_of_managed_teams(
        self, directory, authorizer
    ):
        actor = _actor(directory, "rm_north")
        assert await authorizer.can_evaluate(actor, "lead_a", METRO)
        assert await authorizer.can_evaluate(actor, "lead_b", METRO)
        assert not await authorizer.can_evaluate(actor, "lead_c", METRO)

    @pytest.mark.asyncio
    async def test_regional_manager_cannot_skip_level(self, directory, authorizer):
        for manager in ("rm_north", "rm_south"):
            actor = _actor(directory, manager)
            for subject_id in ("sales_a1", "sales_b1", "sales_c1"):
                assert not await authorizer.can_evaluate(actor, subject_id, METRO)

    @pytest.mark.asyncio
    async def test_director_evaluates_anyone_operational_in_company(
        self, directory, authorizer
    ):
        actor = _actor(directory, "director")
        assert await authorizer.can_evaluate(actor, "lead_c", METRO)
        assert await authorizer.can_evaluate(actor, "sales_b1", METRO)
        assert not await authorizer.can_evaluate(actor, "rm_north", METRO)
        assert not await authorizer.can_evaluate(actor, "sales_x1", METRO)

    @pytest.mark.asyncio
    async def test_super_admin_across_all_companies(self, directory, authorizer):
        actor = _actor(directory, "root")
        assert await authorizer.can_evaluate(actor, "sales_x1", ALL)
        assert not await authorizer.can_evaluate(actor, "sales_x1", METRO)

    @pytest.mark.asyncio
    async def test_inactive_subject_is_not_evaluable(self, directory, authorizer):
        directory.users["sales_a2"].is_active = False
        assert not await authorizer.can_evaluate(_actor(directory, "lead_a"), "sales_a2", METRO)

    @pytest.mark.asyncio
    async def test_inactive_evaluator_evaluates_nobody(self, directory, authorizer):
        actor = _actor(directory, "lead_a").model_copy(update={"is_active": False})
        assert not await authorizer.can_evaluate(actor, "sales_a1", METRO)
        assert await authorizer.visible_subjects(actor, METRO) == []

    @pytest.mark.asyncio
    async def test_unknown_subject_is_false(self, directory, authorizer):
        assert not await authorizer.can_evaluate(_actor(directory, "admin"), "ghost", METRO)

    @pytest.mark.asyncio
    async def test_missing_scope_raises_validation_error(self, directory, authorizer):
        with pytest.raises(ValidationError):
            await authorizer.can_evaluate(
                _actor(directory, "lead_a"), "sales_a1", ResolvedScope()
            )


class TestVisibleSubjects:
    @pytest.mark.asyncio
    async def test_sales_lead_sees_team_salespeople_with_team(self, directory, authorizer):
        subjects = await authorizer.visible_subjects(_actor(directory, "lead_a"), METRO)

        assert sorted(s.id for s in subjects) == ["sales_a1", "sales_a2"]
        assert {s.team_id for s in subjects} == {"team_a"}

    @pytest.mark.asyncio
    async def test_regional_manager_sees_only_leads(self, directory, authorizer):
        subjects = await authorizer.visible_subjects(_actor(directory, "rm_north"), METRO)

        assert sorted(s.id for s in subjects) == ["lead_a", "lead_b"]
        assert all(s.role == Role.SALES_LEAD for s in subjects)

    @pytest.mark.asyncio
    async def test_director_sees_company_operational_staff(self, directory, authorizer):
        subjects = await authorizer.visible_subjects(_actor(directory, "director"), METRO)

        assert sorted(s.id for s in subjects) == [
            "lead_a",
            "lead_b",
            "lead_c",
            "sales_a1",
            "sales_a2",
            "sales_b1",
            "sales_c1",
        ]
        by_id = {s.id: s for s in subjects}
        assert by_id["sales_c1"].team_id == "team_c"

    @pytest.mark.asyncio
    async def test_user_in_two_teams_listed_once(self, directory, authorizer):
        directory.add_team("team_z", None, ["lead_a", "sales_a1"])

        subjects = await authorizer.visible_subjects(_actor(directory, "lead_a"), METRO)

        assert sorted(s.id for s in subjects) == ["sales_a1", "sales_a2"]


# ---------------------------------------------------------------------------
# Property: listing and the point check always agree
# ---------------------------------------------------------------------------

_ROLES = list(Role)


@st.composite
def organisations(draw):
    """A random directory of up to 8 users in up to 3 teams and 2 companies."""
    directory = FakeDirectory()
    count = draw(st.integers(min_value=2, max_value=8))
    for index in range(count):
        directory.add_user(
            make_user(
                f"u{index}",
                draw(st.sampled_from(_ROLES)),
                company_id=draw(st.sampled_from(["company_metro", "company_other"])),
                is_active=draw(st.booleans()),
            )
        )
    user_ids = sorted(directory.users)
    for team_index in range(draw(st.integers(min_value=0, max_value=3))):
        directory.add_team(
            f"t{team_index}",
            draw(st.one_of(st.none(), st.sampled_from(user_ids))),
            draw(st.sets(st.sampled_from(user_ids), max_size=count)),
        )
    return directory


async def _symmetry_holds(directory: FakeDirectory, scope: ResolvedScope) -> None:
    authorizer = HierarchicalAuthorizer(directory)
    for evaluator in directory.users.values():
        actor = actor_for(evaluator)
        visible = {s.id for s in await authorizer.visible_subjects(actor, scope)}
        for subject_id in directory.users:
            allowed = await authorizer.can_evaluate(actor, subject_id, scope)
            assert allowed == (subject_id in visible), (evaluator.id, subject_id)


class TestAuthorizationSymmetry:
    @settings(max_examples=150, deadline=None)
    @given(directory=organisations(), all_companies=st.booleans())
    def test_visible_subjects_matches_can_evaluate(self, directory, all_companies):
        scope = ALL if all_companies else METRO
        asyncio.run(_symmetry_holds(directory, scope))

    @settings(max_examples=150, deadline=None)
    @given(directory=organisations())
    def test_never_evaluates_self_or_upward(self, directory):
        async def check():
            authorizer = HierarchicalAuthorizer(directory)
            for evaluator in directory.users.values():
                actor = actor_for(evaluator)
                for subject in await authorizer.visible_subjects(actor, ALL):
                    assert subject.id != evaluator.id
                    assert subject.role in (Role.SALES_LEAD, Role.SALESPERSON)

        asyncio.run(check())
