"""
OKRs component unit tests.

Creation rules, derived progress and status, personal OKR visibility,
search and the key result lifecycle.
"""

from __future__ import annotations

import dataclasses

import pytest

from src.components.okrs import (
    AddKeyResultInput,
    CreateOkrInput,
    DeleteKeyResultInput,
    DeleteOkrInput,
    GetOkrInput,
    KeyResultDraft,
    ListTeamOkrsInput,
    SearchOkrsInput,
    UpdateKeyResultInput,
    UpdateKeyResultProgressInput,
    UpdateOkrInput,
    run_add_key_result,
    run_create_okr,
    run_delete_key_result,
    run_delete_okr,
    run_get_okr,
    run_list_team_okrs,
    run_search_okrs,
    run_update_key_result,
    run_update_key_result_progress,
    run_update_okr,
)
from src.domain.entities import KeyResult, Team
from src.ports.identity import Identity
from src.ports.repo import RepositoryError

# --- Mock Implementations ---


class FlakyKeyResultRepo:
    """Lets ``allowed`` creates through, then fails."""

    def __init__(self, inner: object, allowed: int) -> None:
        self._inner = inner
        self._allowed = allowed

    def create(self, key_result: KeyResult) -> KeyResult:
        if self._allowed <= 0:
            raise RepositoryError("connection lost")
        self._allowed -= 1
        return self._inner.create(key_result)

    def __getattr__(self, name: str) -> object:
        return getattr(self._inner, name)


def _create_input(team: Team, **overrides: object) -> CreateOkrInput:
    values: dict[str, object] = {
        "team_id": team.id,
        "title": "Grow revenue",
        "type": "team",
        "quarter_year": 2024,
        "quarter_quarter": 2,
        "key_results": [KeyResultDraft(title="Revenue", target_value=50, unit="k$")],
    }
    values.update(overrides)
    return CreateOkrInput(**values)  # type: ignore[arg-type]


# --- Create ---


class TestCreateOkr:
    def test_member_creates_okr_with_key_results(
        self, world, team: Team, member: Identity
    ) -> None:
        result = run_create_okr(
            _create_input(
                team,
                key_results=[
                    KeyResultDraft(title="Revenue", target_value=50, current_value=35),
                    KeyResultDraft(title="Churn calls", target_value=10),
                ],
            ),
            world.ctx(member),
        )

        assert result.success is True
        okr = result.okr
        assert okr.owner_id == member.user_id
        assert [kr.title for kr in okr.key_results] == ["Revenue", "Churn calls"]
        # (70 + 0) / 2
        assert okr.progress == 35
        assert okr.status == "due_soon"

    def test_progress_rounds_exactly(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(
            member, team, key_results=[KeyResultDraft(title="Revenue", target_value=50, current_value=35)]
        )

        fetched = run_get_okr(GetOkrInput(okr_id=okr.id), world.ctx(member))

        assert fetched.okr.progress == 70
        assert fetched.okr.key_results[0].current_value == 35

    def test_viewer_cannot_create(self, world, team: Team, viewer: Identity) -> None:
        result = run_create_okr(_create_input(team), world.ctx(viewer))

        assert result.error.kind == "forbidden"
        assert world.store.okrs == {}

    def test_outsider_cannot_create(self, world, team: Team, outsider: Identity) -> None:
        result = run_create_okr(_create_input(team), world.ctx(outsider))

        assert result.error.kind == "forbidden"

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"title": ""}, "title"),
            ({"type": "company"}, "type"),
            ({"quarter_quarter": 5}, "quarter_quarter"),
            ({"quarter_quarter": 0}, "quarter_quarter"),
            ({"quarter_year": 2019}, "quarter_year"),
            ({"quarter_year": 2051}, "quarter_year"),
            ({"key_results": []}, "key_results"),
            ({"key_results": [KeyResultDraft(title="x", target_value=1)] * 6}, "key_results"),
            ({"key_results": [KeyResultDraft(title="x", target_value=0)]}, "key_results.0.target_value"),
            ({"key_results": [KeyResultDraft(title="", target_value=1)]}, "key_results.0.title"),
            (
                {"key_results": [KeyResultDraft(title="x", target_value=1, current_value=-1)]},
                "key_results.0.current_value",
            ),
        ],
    )
    def test_validation(self, world, team: Team, member: Identity, overrides, field) -> None:
        result = run_create_okr(_create_input(team, **overrides), world.ctx(member))

        assert result.error.kind == "validation"
        assert field in result.error.field_messages()
        assert world.store.okrs == {}

    def test_unknown_team(self, world, member: Identity) -> None:
        result = run_create_okr(
            CreateOkrInput(
                team_id="nope",
                title="x",
                type="team",
                quarter_year=2024,
                quarter_quarter=2,
                key_results=[KeyResultDraft(title="x", target_value=1)],
            ),
            world.ctx(member),
        )

        assert result.error.kind == "not_found"

    def test_admin_assigns_owner(self, world, team: Team, admin: Identity, member: Identity) -> None:
        result = run_create_okr(_create_input(team, owner_id=member.user_id), world.ctx(admin))

        assert result.success is True
        assert result.okr.owner_id == member.user_id

    def test_member_cannot_assign_owner(
        self, world, team: Team, member: Identity, viewer: Identity
    ) -> None:
        result = run_create_okr(_create_input(team, owner_id=viewer.user_id), world.ctx(member))

        assert result.error.kind == "forbidden"

    def test_owner_must_be_team_member(
        self, world, team: Team, admin: Identity, outsider: Identity
    ) -> None:
        result = run_create_okr(_create_input(team, owner_id=outsider.user_id), world.ctx(admin))

        assert result.error.kind == "not_found"

    def test_okr_removed_when_key_result_write_fails(
        self, world, team: Team, member: Identity
    ) -> None:
        ctx = world.ctx(member)
        ctx = dataclasses.replace(ctx, key_results=FlakyKeyResultRepo(ctx.key_results, allowed=1))

        result = run_create_okr(
            _create_input(
                team,
                key_results=[
                    KeyResultDraft(title="a", target_value=1),
                    KeyResultDraft(title="b", target_value=1),
                ],
            ),
            ctx,
        )

        assert result.error.kind == "repository"
        assert world.store.okrs == {}
        assert world.store.key_results == {}


# --- Read ---


class TestReadOkrs:
    def test_viewer_can_view_team_okr(
        self, world, team: Team, member: Identity, viewer: Identity
    ) -> None:
        okr = world.okr(member, team)

        result = run_get_okr(GetOkrInput(okr_id=okr.id), world.ctx(viewer))

        assert result.success is True
        assert result.okr.title == "Ship v2"

    def test_personal_okr_visible_to_owner_and_admin_only(
        self, world, team: Team, admin: Identity, member: Identity, viewer: Identity
    ) -> None:
        okr = world.okr(member, team, type="personal")

        assert run_get_okr(GetOkrInput(okr_id=okr.id), world.ctx(member)).success
        assert run_get_okr(GetOkrInput(okr_id=okr.id), world.ctx(admin)).success
        hidden = run_get_okr(GetOkrInput(okr_id=okr.id), world.ctx(viewer))
        assert hidden.error.kind == "forbidden"

    def test_unknown_okr(self, world, member: Identity) -> None:
        result = run_get_okr(GetOkrInput(okr_id="missing"), world.ctx(member))

        assert result.error.kind == "not_found"

    def test_list_team_okrs_filters_quarter_and_visibility(
        self, world, team: Team, member: Identity, viewer: Identity
    ) -> None:
        world.okr(member, team, title="Q2 team")
        world.okr(member, team, title="Q1 team", quarter=1)
        world.okr(member, team, title="Q2 personal", type="personal")

        q2 = run_list_team_okrs(
            ListTeamOkrsInput(team_id=team.id, quarter_year=2024, quarter_quarter=2),
            world.ctx(viewer),
        )
        owner_view = run_list_team_okrs(ListTeamOkrsInput(team_id=team.id), world.ctx(member))

        assert [o.title for o in q2.okrs] == ["Q2 team"]
        assert q2.total == 1
        assert owner_view.total == 3

    def test_past_quarter_is_overdue(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(
            member,
            team,
            quarter=1,
            key_results=[KeyResultDraft(title="x", target_value=10, current_value=6)],
        )

        result = run_get_okr(GetOkrInput(okr_id=okr.id), world.ctx(member))

        assert result.okr.progress == 60
        assert result.okr.status == "overdue"

    def test_completed_wins_over_overdue(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(
            member,
            team,
            quarter=1,
            key_results=[KeyResultDraft(title="x", target_value=10, current_value=12)],
        )

        assert okr.progress == 100
        assert okr.status == "completed"

    def test_list_requires_membership(self, world, team: Team, outsider: Identity) -> None:
        result = run_list_team_okrs(ListTeamOkrsInput(team_id=team.id), world.ctx(outsider))

        assert result.error.kind == "forbidden"


class TestSearchOkrs:
    def test_matches_title_and_description(self, world, team: Team, member: Identity) -> None:
        world.okr(member, team, title="Grow revenue")
        world.okr(member, team, title="Hire designers")

        result = run_search_okrs(SearchOkrsInput(query="REVENUE"), world.ctx(member))

        assert result.success is True
        assert [o.title for o in result.okrs] == ["Grow revenue"]

    def test_hides_other_peoples_personal_okrs(
        self, world, team: Team, admin: Identity, member: Identity, viewer: Identity
    ) -> None:
        world.okr(member, team, title="Mine", type="personal")
        world.okr(member, team, title="Shared")

        as_viewer = run_search_okrs(SearchOkrsInput(), world.ctx(viewer))
        as_admin = run_search_okrs(SearchOkrsInput(), world.ctx(admin))

        assert [o.title for o in as_viewer.okrs] == ["Shared"]
        assert as_admin.total == 2

    def test_only_searches_own_teams(
        self, world, team: Team, member: Identity, outsider: Identity
    ) -> None:
        world.okr(member, team)

        result = run_search_okrs(SearchOkrsInput(), world.ctx(outsider))
        scoped = run_search_okrs(SearchOkrsInput(team_id=team.id), world.ctx(outsider))

        assert result.success is True
        assert result.okrs == []
        assert scoped.error.kind == "forbidden"

    def test_filters_and_pagination(self, world, team: Team, member: Identity) -> None:
        for i in range(3):
            world.okr(member, team, title=f"Goal {i}")
        world.okr(member, team, title="Old goal", year=2023, quarter=4)

        page = run_search_okrs(
            SearchOkrsInput(query="goal", year=2024, quarter=2, page=2, limit=2),
            world.ctx(member),
        )

        assert page.total == 3
        assert len(page.okrs) == 1

    def test_invalid_filters(self, world, member: Identity) -> None:
        result = run_search_okrs(SearchOkrsInput(type="company", quarter=7), world.ctx(member))

        assert set(result.error.field_messages()) == {"type", "quarter"}


# --- Update / Delete ---


class TestUpdateAndDeleteOkr:
    def test_owner_edits_own_okr(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_update_okr(
            UpdateOkrInput(okr_id=okr.id, title="Ship v3", description="Now with more"),
            world.ctx(member),
        )

        assert result.success is True
        assert result.okr.title == "Ship v3"
        assert result.okr.description == "Now with more"

    def test_other_member_cannot_edit(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        okr = world.okr(admin, team)

        result = run_update_okr(UpdateOkrInput(okr_id=okr.id, title="Mine"), world.ctx(member))

        assert result.error.kind == "forbidden"

    def test_admin_edits_any_okr(self, world, team: Team, admin: Identity, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_update_okr(UpdateOkrInput(okr_id=okr.id, title="Renamed"), world.ctx(admin))

        assert result.success is True

    def test_empty_title_rejected(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_update_okr(UpdateOkrInput(okr_id=okr.id, title=" "), world.ctx(member))

        assert result.error.kind == "validation"

    def test_owner_cannot_delete(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_delete_okr(DeleteOkrInput(okr_id=okr.id), world.ctx(member))

        assert result.error.kind == "forbidden"
        assert okr.id in world.store.okrs

    def test_admin_delete_cascades(self, world, team: Team, admin: Identity, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_delete_okr(DeleteOkrInput(okr_id=okr.id), world.ctx(admin))

        assert result.success is True
        assert world.store.okrs == {}
        assert world.store.key_results == {}


# --- Key results ---


class TestKeyResults:
    def test_owner_adds_key_result(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(
            member, team, key_results=[KeyResultDraft(title="a", target_value=10, current_value=10)]
        )

        result = run_add_key_result(
            AddKeyResultInput(okr_id=okr.id, title="b", target_value=4), world.ctx(member)
        )

        assert result.success is True
        assert result.key_result.okr_id == okr.id
        assert result.okr_progress == 50

    def test_sixth_key_result_conflicts(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(
            member, team, key_results=[KeyResultDraft(title=f"kr{i}", target_value=1) for i in range(5)]
        )

        result = run_add_key_result(
            AddKeyResultInput(okr_id=okr.id, title="one more", target_value=1), world.ctx(member)
        )

        assert result.error.kind == "conflict"
        assert len(world.store.key_results) == 5

    def test_progress_update_recomputes_okr(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team, key_results=[KeyResultDraft(title="Revenue", target_value=50)])
        kr_id = okr.key_results[0].id

        result = run_update_key_result_progress(
            UpdateKeyResultProgressInput(key_result_id=kr_id, current_value=35), world.ctx(member)
        )

        assert result.success is True
        assert result.key_result.current_value == 35
        assert result.okr_progress == 70

    def test_progress_above_target_is_kept_but_capped(
        self, world, team: Team, member: Identity
    ) -> None:
        okr = world.okr(member, team)
        kr_id = okr.key_results[0].id

        result = run_update_key_result_progress(
            UpdateKeyResultProgressInput(key_result_id=kr_id, current_value=25), world.ctx(member)
        )

        assert result.key_result.current_value == 25
        assert result.okr_progress == 100

    @pytest.mark.parametrize("value", [-1, float("nan"), "10", True])
    def test_progress_rejects_bad_values(self, world, team: Team, member: Identity, value) -> None:
        okr = world.okr(member, team)

        result = run_update_key_result_progress(
            UpdateKeyResultProgressInput(key_result_id=okr.key_results[0].id, current_value=value),
            world.ctx(member),
        )

        assert result.error.kind == "validation"
        assert "current_value" in result.error.field_messages()

    def test_viewer_cannot_update_progress(
        self, world, team: Team, member: Identity, viewer: Identity
    ) -> None:
        okr = world.okr(member, team)

        result = run_update_key_result_progress(
            UpdateKeyResultProgressInput(key_result_id=okr.key_results[0].id, current_value=5),
            world.ctx(viewer),
        )

        assert result.error.kind == "forbidden"
        assert world.store.key_results[okr.key_results[0].id].current_value == 0

    def test_update_key_result_fields(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)
        kr_id = okr.key_results[0].id

        result = run_update_key_result(
            UpdateKeyResultInput(key_result_id=kr_id, title="Close bugs", target_value=20, unit="bugs"),
            world.ctx(member),
        )

        assert result.success is True
        assert result.key_result.title == "Close bugs"
        assert result.key_result.target_value == 20
        assert result.key_result.unit == "bugs"

    def test_update_rejects_zero_target(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_update_key_result(
            UpdateKeyResultInput(key_result_id=okr.key_results[0].id, target_value=0),
            world.ctx(member),
        )

        assert "target_value" in result.error.field_messages()

    def test_last_key_result_cannot_be_deleted(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_delete_key_result(
            DeleteKeyResultInput(key_result_id=okr.key_results[0].id), world.ctx(member)
        )

        assert result.error.kind == "conflict"
        assert len(world.store.key_results) == 1

    def test_delete_key_result(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(
            member,
            team,
            key_results=[
                KeyResultDraft(title="done", target_value=1, current_value=1),
                KeyResultDraft(title="todo", target_value=1),
            ],
        )
        todo = next(kr for kr in okr.key_results if kr.title == "todo")

        result = run_delete_key_result(DeleteKeyResultInput(key_result_id=todo.id), world.ctx(member))

        assert result.success is True
        assert result.okr_progress == 100

    def test_unknown_key_result(self, world, member: Identity) -> None:
        result = run_update_key_result_progress(
            UpdateKeyResultProgressInput(key_result_id="missing", current_value=1), world.ctx(member)
        )

        assert result.error.kind == "not_found"
