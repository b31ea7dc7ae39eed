"""
OKRs component - objectives and their key results.

Key behaviors:
- Members and admins create OKRs; admins, or the owner, edit them; only
  admins delete them
- An OKR is created with 1-5 key results; progress and status are always
  derived on read (src.domain.progress), never stored
- Personal OKRs are visible to their owner and team admins only
- Quarter years are bounded by rules.okrs.quarter_year
"""

import logging

from src.domain.entities import KeyResult, Okr, OkrType, TeamRole
from src.domain.errors import AppError, ValidationIssue
from src.domain.validation import (
    check_choice,
    check_id,
    check_int_range,
    check_pagination,
    check_text,
)
from src.ports.identity import Identity
from src.ports.repo import OkrFilter, Quarter, RepositoryError

from .._common import denied, member_role, repository_guard
from ..context import UseCaseContext
from ._impl import assemble, assemble_many, validate_key_result
from .models import (
    CreateOkrInput,
    DeleteOkrInput,
    GetOkrInput,
    ListTeamOkrsInput,
    OkrListOutput,
    OkrOutput,
    SearchOkrsInput,
    UpdateOkrInput,
)

logger = logging.getLogger(__name__)

OKR_TYPES: tuple[OkrType, ...] = ("team", "personal")


def _check_quarter(
    ctx: UseCaseContext, year: object, quarter: object, prefix: str = ""
) -> list[ValidationIssue]:
    bounds = ctx.rules.okrs.quarter_year
    issues = check_int_range(year, f"{prefix}year", bounds.min, bounds.max)
    issues += check_int_range(quarter, f"{prefix}quarter", 1, 4)
    return issues


def _validate_create(inp: CreateOkrInput, ctx: UseCaseContext) -> list[ValidationIssue]:
    rules = ctx.rules.okrs
    issues = check_id(inp.team_id, "team_id")
    issues += check_text(inp.title, "title", rules.title)
    issues += check_text(inp.description, "description", rules.description, required=False)
    issues += check_choice(inp.type, "type", OKR_TYPES)
    issues += _check_quarter(ctx, inp.quarter_year, inp.quarter_quarter, prefix="quarter_")
    if inp.owner_id is not None:
        issues += check_id(inp.owner_id, "owner_id")

    count = len(inp.key_results)
    if count < rules.key_results.min or count > rules.key_results.max:
        issues.append(
            ValidationIssue(
                "key_results",
                "invalid_count",
                f"An OKR needs between {rules.key_results.min} and "
                f"{rules.key_results.max} key results",
            )
        )
    for i, draft in enumerate(inp.key_results):
        issues += validate_key_result(
            ctx,
            f"key_results.{i}.",
            title=draft.title,
            target_value=draft.target_value,
            unit=draft.unit,
            current_value=draft.current_value,
        )
    return issues


def can_view(ctx: UseCaseContext, okr: Okr, role: TeamRole | None, actor: Identity) -> bool:
    return ctx.policy.can_view_okr(role, okr.type, okr.owner_id == actor.user_id)


@repository_guard(OkrOutput, "Failed to create OKR")
def run_create_okr(inp: CreateOkrInput, ctx: UseCaseContext) -> OkrOutput:
    actor = ctx.identity.current()
    if not actor:
        return OkrOutput(error=AppError.unauthenticated())

    issues = _validate_create(inp, ctx)
    if issues:
        return OkrOutput(error=AppError.validation(issues))

    team = ctx.teams.get_by_id(inp.team_id)
    if not team:
        return OkrOutput(error=AppError.not_found("team"))

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "create_okr"):
        return OkrOutput(error=denied("create_okr", f"team:{team.id}", actor.user_id))

    owner_id = inp.owner_id or actor.user_id
    if owner_id != actor.user_id:
        if role != "admin":
            return OkrOutput(
                error=AppError.forbidden(
                    "Only team admins can create OKRs for other members",
                    resource=f"team:{team.id}",
                )
            )
        if not ctx.members.get_by_team_and_user(team.id, owner_id):
            return OkrOutput(
                error=AppError.not_found("team member", "Owner is not a member of this team")
            )

    now = ctx.clock.now_utc()
    okr = Okr(
        title=inp.title.strip(),
        description=inp.description or None,
        type=inp.type,  # type: ignore[arg-type]
        team_id=team.id,
        owner_id=owner_id,
        quarter_year=inp.quarter_year,
        quarter_quarter=inp.quarter_quarter,
        created_at=now,
        updated_at=now,
    )
    ctx.okrs.create(okr)

    try:
        for draft in inp.key_results:
            ctx.key_results.create(
                KeyResult(
                    okr_id=okr.id,
                    title=draft.title.strip(),
                    target_value=draft.target_value,
                    current_value=draft.current_value,
                    unit=draft.unit or None,
                    created_at=now,
                    updated_at=now,
                )
            )
    except RepositoryError:
        # Deleting the OKR cascades to any key results already written.
        ctx.okrs.delete(okr.id)
        raise

    logger.info("OKR %s created in team %s by %s", okr.id, team.id, actor.user_id)
    return OkrOutput(okr=assemble(ctx, okr), success=True)


@repository_guard(OkrOutput, "Failed to load OKR")
def run_get_okr(inp: GetOkrInput, ctx: UseCaseContext) -> OkrOutput:
    actor = ctx.identity.current()
    if not actor:
        return OkrOutput(error=AppError.unauthenticated())

    issues = check_id(inp.okr_id, "okr_id")
    if issues:
        return OkrOutput(error=AppError.validation(issues))

    okr = ctx.okrs.get_by_id(inp.okr_id)
    if not okr:
        return OkrOutput(error=AppError.not_found("okr"))

    role = member_role(ctx, okr.team_id, actor.user_id)
    if not can_view(ctx, okr, role, actor):
        return OkrOutput(error=denied("view", f"okr:{okr.id}", actor.user_id))

    return OkrOutput(okr=assemble(ctx, okr), success=True)


@repository_guard(OkrOutput, "Failed to update OKR")
def run_update_okr(inp: UpdateOkrInput, ctx: UseCaseContext) -> OkrOutput:
    actor = ctx.identity.current()
    if not actor:
        return OkrOutput(error=AppError.unauthenticated())

    rules = ctx.rules.okrs
    issues = check_id(inp.okr_id, "okr_id")
    if inp.title is not None:
        issues += check_text(inp.title, "title", rules.title)
    issues += check_text(inp.description, "description", rules.description, required=False)
    if issues:
        return OkrOutput(error=AppError.validation(issues))

    okr = ctx.okrs.get_by_id(inp.okr_id)
    if not okr:
        return OkrOutput(error=AppError.not_found("okr"))

    role = member_role(ctx, okr.team_id, actor.user_id)
    if not ctx.policy.can_perform(role, "edit_okr", is_owner=okr.owner_id == actor.user_id):
        return OkrOutput(error=denied("edit_okr", f"okr:{okr.id}", actor.user_id))

    updates: dict[str, object] = {"updated_at": ctx.clock.now_utc()}
    if inp.title is not None:
        updates["title"] = inp.title.strip()
    if inp.description is not None:
        updates["description"] = inp.description or None

    updated = ctx.okrs.update(okr.model_copy(update=updates))
    return OkrOutput(okr=assemble(ctx, updated), success=True)


@repository_guard(OkrOutput, "Failed to delete OKR")
def run_delete_okr(inp: DeleteOkrInput, ctx: UseCaseContext) -> OkrOutput:
    actor = ctx.identity.current()
    if not actor:
        return OkrOutput(error=AppError.unauthenticated())

    issues = check_id(inp.okr_id, "okr_id")
    if issues:
        return OkrOutput(error=AppError.validation(issues))

    okr = ctx.okrs.get_by_id(inp.okr_id)
    if not okr:
        return OkrOutput(error=AppError.not_found("okr"))

    role = member_role(ctx, okr.team_id, actor.user_id)
    if not ctx.policy.can_perform(role, "delete_okr"):
        return OkrOutput(error=denied("delete_okr", f"okr:{okr.id}", actor.user_id))

    ctx.okrs.delete(okr.id)
    logger.info("OKR %s deleted by %s", okr.id, actor.user_id)
    return OkrOutput(success=True)


@repository_guard(OkrListOutput, "Failed to list OKRs")
def run_list_team_okrs(inp: ListTeamOkrsInput, ctx: UseCaseContext) -> OkrListOutput:
    actor = ctx.identity.current()
    if not actor:
        return OkrListOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    quarter: Quarter | None = None
    if inp.quarter_year is not None or inp.quarter_quarter is not None:
        issues += _check_quarter(ctx, inp.quarter_year, inp.quarter_quarter, prefix="quarter_")
        if not issues:
            quarter = Quarter(inp.quarter_year, inp.quarter_quarter)  # type: ignore[arg-type]
    if issues:
        return OkrListOutput(error=AppError.validation(issues))

    team = ctx.teams.get_by_id(inp.team_id)
    if not team:
        return OkrListOutput(error=AppError.not_found("team"))

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "view"):
        return OkrListOutput(error=denied("view", f"team:{team.id}", actor.user_id))

    visible = [o for o in ctx.okrs.list_by_team(team.id, quarter) if can_view(ctx, o, role, actor)]
    return OkrListOutput(okrs=assemble_many(ctx, visible), total=len(visible), success=True)


def _validate_search(inp: SearchOkrsInput, ctx: UseCaseContext, limit: int) -> list[ValidationIssue]:
    bounds = ctx.rules.okrs.quarter_year
    issues = check_pagination(inp.page, limit, ctx.rules.pagination)
    if not isinstance(inp.query, str):
        issues.append(ValidationIssue("query", "invalid_type", "query must be a string"))
    if inp.type is not None:
        issues += check_choice(inp.type, "type", OKR_TYPES)
    if inp.year is not None:
        issues += check_int_range(inp.year, "year", bounds.min, bounds.max)
    if inp.quarter is not None:
        issues += check_int_range(inp.quarter, "quarter", 1, 4)
    if inp.team_id is not None:
        issues += check_id(inp.team_id, "team_id")
    return issues


@repository_guard(OkrListOutput, "Failed to search OKRs")
def run_search_okrs(inp: SearchOkrsInput, ctx: UseCaseContext) -> OkrListOutput:
    """
    Free-text search over the OKRs the caller can see: OKRs of teams they
    belong to, minus other people's personal OKRs in teams they don't admin.
    """
    actor = ctx.identity.current()
    if not actor:
        return OkrListOutput(error=AppError.unauthenticated())

    limit = inp.limit or ctx.rules.pagination.default_limit
    issues = _validate_search(inp, ctx, limit)
    if issues:
        return OkrListOutput(error=AppError.validation(issues))

    memberships = ctx.members.list_by_user(actor.user_id)
    roles = {m.team_id: m.role for m in memberships}

    if inp.team_id is not None:
        if not ctx.teams.get_by_id(inp.team_id):
            return OkrListOutput(error=AppError.not_found("team"))
        if not ctx.policy.can_perform(roles.get(inp.team_id), "view"):
            return OkrListOutput(error=denied("view", f"team:{inp.team_id}", actor.user_id))
        team_ids = [inp.team_id]
    else:
        team_ids = [t for t, r in roles.items() if ctx.policy.can_perform(r, "view")]

    if not team_ids:
        return OkrListOutput(success=True)

    okr_filter = OkrFilter(
        team_ids=team_ids,
        owner_id=inp.owner_id,
        type=inp.type,  # type: ignore[arg-type]
        year=inp.year,
        quarter=inp.quarter,
        viewer_id=actor.user_id,
        admin_team_ids=[t for t, r in roles.items() if r == "admin"],
    )
    page = ctx.okrs.search(inp.query.strip(), okr_filter, inp.page, limit)
    return OkrListOutput(okrs=assemble_many(ctx, page.items), total=page.total, success=True)
