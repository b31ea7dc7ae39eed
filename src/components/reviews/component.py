"""
Reviews component - periodic written reviews of an OKR.

Members and admins may review any OKR they can see. The reviewer, or a
team admin, may edit or delete a review afterwards.
"""

import logging

from src.domain.entities import Action, Okr, Review, ReviewId, ReviewType
from src.domain.errors import AppError, ValidationIssue
from src.domain.validation import check_choice, check_id, check_pagination, check_text
from src.ports.identity import Identity

from .._common import denied, member_role, repository_guard
from ..context import UseCaseContext
from ..okrs.component import can_view
from .models import (
    CreateReviewInput,
    DeleteReviewInput,
    ListReviewsInput,
    ReviewListOutput,
    ReviewOutput,
    UpdateReviewInput,
)

logger = logging.getLogger(__name__)

REVIEW_TYPES: tuple[ReviewType, ...] = ("progress", "final")


def _load_review(
    ctx: UseCaseContext, review_id: ReviewId, actor: Identity, action: Action
) -> tuple[Review, Okr] | AppError:
    review = ctx.reviews.get_by_id(review_id)
    if not review:
        return AppError.not_found("review")

    okr = ctx.okrs.get_by_id(review.okr_id)
    if not okr:
        return AppError.not_found("okr")

    role = member_role(ctx, okr.team_id, actor.user_id)
    is_owner = review.reviewer_id == actor.user_id
    if not ctx.policy.can_perform(role, action, is_owner=is_owner):
        return denied(action, f"review:{review.id}", actor.user_id)
    return review, okr


@repository_guard(ReviewOutput, "Failed to create review")
def run_create_review(inp: CreateReviewInput, ctx: UseCaseContext) -> ReviewOutput:
    actor = ctx.identity.current()
    if not actor:
        return ReviewOutput(error=AppError.unauthenticated())

    issues = check_id(inp.okr_id, "okr_id")
    issues += check_choice(inp.type, "type", REVIEW_TYPES)
    issues += check_text(inp.content, "content", ctx.rules.reviews.content)
    if issues:
        return ReviewOutput(error=AppError.validation(issues))

    okr = ctx.okrs.get_by_id(inp.okr_id)
    if not okr:
        return ReviewOutput(error=AppError.not_found("okr"))

    role = member_role(ctx, okr.team_id, actor.user_id)
    if not ctx.policy.can_perform(role, "create_review") or not can_view(ctx, okr, role, actor):
        return ReviewOutput(error=denied("create_review", f"okr:{okr.id}", actor.user_id))

    now = ctx.clock.now_utc()
    review = ctx.reviews.create(
        Review(
            okr_id=okr.id,
            type=inp.type,  # type: ignore[arg-type]
            content=inp.content.strip(),
            reviewer_id=actor.user_id,
            created_at=now,
            updated_at=now,
        )
    )
    logger.info("Review %s (%s) added to OKR %s by %s", review.id, review.type, okr.id, actor.user_id)
    return ReviewOutput(review=review, success=True)


@repository_guard(ReviewOutput, "Failed to update review")
def run_update_review(inp: UpdateReviewInput, ctx: UseCaseContext) -> ReviewOutput:
    actor = ctx.identity.current()
    if not actor:
        return ReviewOutput(error=AppError.unauthenticated())

    issues = check_id(inp.review_id, "review_id")
    if inp.content is not None:
        issues += check_text(inp.content, "content", ctx.rules.reviews.content)
    if inp.type is not None:
        issues += check_choice(inp.type, "type", REVIEW_TYPES)
    if issues:
        return ReviewOutput(error=AppError.validation(issues))

    loaded = _load_review(ctx, inp.review_id, actor, "edit_review")
    if isinstance(loaded, AppError):
        return ReviewOutput(error=loaded)
    review, _ = loaded

    updates: dict[str, object] = {"updated_at": ctx.clock.now_utc()}
    if inp.content is not None:
        updates["content"] = inp.content.strip()
    if inp.type is not None:
        updates["type"] = inp.type

    updated = ctx.reviews.update(review.model_copy(update=updates))
    return ReviewOutput(review=updated, success=True)


@repository_guard(ReviewOutput, "Failed to delete review")
def run_delete_review(inp: DeleteReviewInput, ctx: UseCaseContext) -> ReviewOutput:
    actor = ctx.identity.current()
    if not actor:
        return ReviewOutput(error=AppError.unauthenticated())

    issues = check_id(inp.review_id, "review_id")
    if issues:
        return ReviewOutput(error=AppError.validation(issues))

    loaded = _load_review(ctx, inp.review_id, actor, "delete_review")
    if isinstance(loaded, AppError):
        return ReviewOutput(error=loaded)
    review, _ = loaded

    ctx.reviews.delete(review.id)
    logger.info("Review %s deleted by %s", review.id, actor.user_id)
    return ReviewOutput(review=review, success=True)


@repository_guard(ReviewListOutput, "Failed to list reviews")
def run_list_reviews(inp: ListReviewsInput, ctx: UseCaseContext) -> ReviewListOutput:
    """Reviews of one OKR, oldest first."""
    actor = ctx.identity.current()
    if not actor:
        return ReviewListOutput(error=AppError.unauthenticated())

    limit = inp.limit or ctx.rules.pagination.default_limit
    issues: list[ValidationIssue] = check_id(inp.okr_id, "okr_id")
    issues += check_pagination(inp.page, limit, ctx.rules.pagination)
    if inp.type is not None:
        issues += check_choice(inp.type, "type", REVIEW_TYPES)
    if issues:
        return ReviewListOutput(error=AppError.validation(issues))

    okr = ctx.okrs.get_by_id(inp.okr_id)
    if not okr:
        return ReviewListOutput(error=AppError.not_found("okr"))

    role = member_role(ctx, okr.team_id, actor.user_id)
    if not can_view(ctx, okr, role, actor):
        return ReviewListOutput(error=denied("view", f"okr:{okr.id}", actor.user_id))

    page = ctx.reviews.list(
        inp.page,
        limit,
        okr_id=okr.id,
        review_type=inp.type,  # type: ignore[arg-type]
        reviewer_id=inp.reviewer_id,
    )
    return ReviewListOutput(reviews=page.items, total=page.total, success=True)
