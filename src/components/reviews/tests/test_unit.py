"""
Reviews component unit tests.
"""

from __future__ import annotations

from src.components.reviews import (
    CreateReviewInput,
    DeleteReviewInput,
    ListReviewsInput,
    UpdateReviewInput,
    run_create_review,
    run_delete_review,
    run_list_reviews,
    run_update_review,
)
from src.domain.entities import OkrWithKeyResults, Review, Team
from src.ports.identity import Identity


def _review(world, okr: OkrWithKeyResults, who: Identity, content: str = "On track",
            type: str = "progress") -> Review:
    result = run_create_review(
        CreateReviewInput(okr_id=okr.id, type=type, content=content), world.ctx(who)
    )
    assert result.success, result.error
    return result.review


class TestCreateReview:
    def test_member_reviews_team_okr(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        okr = world.okr(admin, team)

        result = run_create_review(
            CreateReviewInput(okr_id=okr.id, type="progress", content="  Halfway there  "),
            world.ctx(member),
        )

        assert result.success is True
        assert result.review.content == "Halfway there"
        assert result.review.reviewer_id == member.user_id

    def test_viewer_cannot_review(
        self, world, team: Team, member: Identity, viewer: Identity
    ) -> None:
        okr = world.okr(member, team)

        result = run_create_review(
            CreateReviewInput(okr_id=okr.id, type="progress", content="Nice"), world.ctx(viewer)
        )

        assert result.error.kind == "forbidden"

    def test_cannot_review_hidden_personal_okr(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        okr = world.okr(admin, team, type="personal")

        result = run_create_review(
            CreateReviewInput(okr_id=okr.id, type="final", content="Peek"), world.ctx(member)
        )

        assert result.error.kind == "forbidden"

    def test_validation(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)

        result = run_create_review(
            CreateReviewInput(okr_id=okr.id, type="weekly", content="x" * 2001),
            world.ctx(member),
        )

        assert set(result.error.field_messages()) == {"type", "content"}

    def test_unknown_okr(self, world, member: Identity) -> None:
        result = run_create_review(
            CreateReviewInput(okr_id="missing", type="final", content="Done"), world.ctx(member)
        )

        assert result.error.kind == "not_found"


class TestEditReview:
    def test_reviewer_edits_own_review(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)
        review = _review(world, okr, member)

        result = run_update_review(
            UpdateReviewInput(review_id=review.id, content="Slipping", type="final"),
            world.ctx(member),
        )

        assert result.success is True
        assert result.review.content == "Slipping"
        assert result.review.type == "final"

    def test_other_member_cannot_edit(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        okr = world.okr(admin, team)
        review = _review(world, okr, admin)

        result = run_update_review(
            UpdateReviewInput(review_id=review.id, content="Rewritten"), world.ctx(member)
        )

        assert result.error.kind == "forbidden"
        assert world.store.reviews[review.id].content == "On track"

    def test_admin_deletes_any_review(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        okr = world.okr(member, team)
        review = _review(world, okr, member)

        result = run_delete_review(DeleteReviewInput(review_id=review.id), world.ctx(admin))

        assert result.success is True
        assert world.store.reviews == {}

    def test_reviewer_deletes_own_review(self, world, team: Team, member: Identity) -> None:
        okr = world.okr(member, team)
        review = _review(world, okr, member)

        result = run_delete_review(DeleteReviewInput(review_id=review.id), world.ctx(member))

        assert result.success is True

    def test_former_member_loses_access(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        okr = world.okr(admin, team)
        review = _review(world, okr, member)
        del world.store.members[(team.id, member.user_id)]

        result = run_delete_review(DeleteReviewInput(review_id=review.id), world.ctx(member))

        assert result.error.kind == "forbidden"

    def test_unknown_review(self, world, member: Identity) -> None:
        result = run_update_review(
            UpdateReviewInput(review_id="missing", content="x"), world.ctx(member)
        )

        assert result.error.kind == "not_found"


class TestListReviews:
    def test_oldest_first_with_filters(
        self, world, clock, team: Team, admin: Identity, member: Identity, viewer: Identity
    ) -> None:
        okr = world.okr(admin, team)
        _review(world, okr, member, "first")
        clock.advance(60)
        _review(world, okr, admin, "second", type="final")
        clock.advance(60)
        _review(world, okr, member, "third")

        everything = run_list_reviews(ListReviewsInput(okr_id=okr.id), world.ctx(viewer))
        progress = run_list_reviews(
            ListReviewsInput(okr_id=okr.id, type="progress", reviewer_id=member.user_id),
            world.ctx(viewer),
        )

        assert [r.content for r in everything.reviews] == ["first", "second", "third"]
        assert everything.total == 3
        assert [r.content for r in progress.reviews] == ["first", "third"]

    def test_requires_visibility(self, world, team: Team, member: Identity, outsider: Identity) -> None:
        okr = world.okr(member, team)

        result = run_list_reviews(ListReviewsInput(okr_id=okr.id), world.ctx(outsider))

        assert result.error.kind == "forbidden"

    def test_reviews_go_with_their_okr(self, world, team: Team, admin: Identity) -> None:
        from src.components.okrs import DeleteOkrInput, run_delete_okr

        okr = world.okr(admin, team)
        _review(world, okr, admin)

        run_delete_okr(DeleteOkrInput(okr_id=okr.id), world.ctx(admin))

        assert world.store.reviews == {}
