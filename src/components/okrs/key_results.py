"""
Key result mutations. All of them are "edit_okr" on the parent OKR, so the
OKR owner can maintain their own key results without being an admin.
"""

import logging

from src.domain.entities import KeyResult, KeyResultId, Okr
from src.domain.errors import AppError
from src.domain.progress import compute_progress
from src.domain.validation import check_id, check_number
from src.ports.identity import Identity

from .._common import denied, member_role, repository_guard
from ..context import UseCaseContext
from ._impl import validate_key_result
from .models import (
    AddKeyResultInput,
    DeleteKeyResultInput,
    KeyResultOutput,
    UpdateKeyResultInput,
    UpdateKeyResultProgressInput,
)

logger = logging.getLogger(__name__)


def _authorize_edit(ctx: UseCaseContext, okr: Okr, actor: Identity) -> AppError | None:
    role = member_role(ctx, okr.team_id, actor.user_id)
    if not ctx.policy.can_perform(role, "edit_okr", is_owner=okr.owner_id == actor.user_id):
        return denied("edit_okr", f"okr:{okr.id}", actor.user_id)
    return None


def _load_for_edit(
    ctx: UseCaseContext, key_result_id: KeyResultId, actor: Identity
) -> tuple[KeyResult, Okr] | AppError:
    key_result = ctx.key_results.get_by_id(key_result_id)
    if not key_result:
        return AppError.not_found("key result")

    okr = ctx.okrs.get_by_id(key_result.okr_id)
    if not okr:
        return AppError.not_found("okr")

    return _authorize_edit(ctx, okr, actor) or (key_result, okr)


def _progress_of(ctx: UseCaseContext, okr: Okr) -> int:
    return compute_progress(ctx.key_results.list_by_okr(okr.id))


@repository_guard(KeyResultOutput, "Failed to add key result")
def run_add_key_result(inp: AddKeyResultInput, ctx: UseCaseContext) -> KeyResultOutput:
    actor = ctx.identity.current()
    if not actor:
        return KeyResultOutput(error=AppError.unauthenticated())

    issues = check_id(inp.okr_id, "okr_id")
    issues += validate_key_result(
        ctx,
        "",
        title=inp.title,
        target_value=inp.target_value,
        unit=inp.unit,
        current_value=inp.current_value,
    )
    if issues:
        return KeyResultOutput(error=AppError.validation(issues))

    okr = ctx.okrs.get_by_id(inp.okr_id)
    if not okr:
        return KeyResultOutput(error=AppError.not_found("okr"))

    error = _authorize_edit(ctx, okr, actor)
    if error:
        return KeyResultOutput(error=error)

    limit = ctx.rules.okrs.key_results.max
    if len(ctx.key_results.list_by_okr(okr.id)) >= limit:
        return KeyResultOutput(
            error=AppError.conflict(
                f"An OKR can have at most {limit} key results", resource=f"okr:{okr.id}"
            )
        )

    now = ctx.clock.now_utc()
    key_result = ctx.key_results.create(
        KeyResult(
            okr_id=okr.id,
            title=inp.title.strip(),
            target_value=inp.target_value,
            current_value=inp.current_value,
            unit=inp.unit or None,
            created_at=now,
            updated_at=now,
        )
    )
    return KeyResultOutput(key_result=key_result, okr_progress=_progress_of(ctx, okr), success=True)


@repository_guard(KeyResultOutput, "Failed to update key result")
def run_update_key_result(inp: UpdateKeyResultInput, ctx: UseCaseContext) -> KeyResultOutput:
    actor = ctx.identity.current()
    if not actor:
        return KeyResultOutput(error=AppError.unauthenticated())

    issues = check_id(inp.key_result_id, "key_result_id")
    issues += validate_key_result(
        ctx,
        "",
        title=inp.title,
        target_value=inp.target_value,
        unit=inp.unit,
        partial=True,
    )
    if issues:
        return KeyResultOutput(error=AppError.validation(issues))

    loaded = _load_for_edit(ctx, inp.key_result_id, actor)
    if isinstance(loaded, AppError):
        return KeyResultOutput(error=loaded)
    key_result, okr = loaded

    updates: dict[str, object] = {"updated_at": ctx.clock.now_utc()}
    if inp.title is not None:
        updates["title"] = inp.title.strip()
    if inp.target_value is not None:
        updates["target_value"] = inp.target_value
    if inp.unit is not None:
        updates["unit"] = inp.unit or None

    updated = ctx.key_results.update(key_result.model_copy(update=updates))
    return KeyResultOutput(key_result=updated, okr_progress=_progress_of(ctx, okr), success=True)


@repository_guard(KeyResultOutput, "Failed to update key result progress")
def run_update_key_result_progress(
    inp: UpdateKeyResultProgressInput, ctx: UseCaseContext
) -> KeyResultOutput:
    """Record a new current value. Values above target are kept as entered."""
    actor = ctx.identity.current()
    if not actor:
        return KeyResultOutput(error=AppError.unauthenticated())

    issues = check_id(inp.key_result_id, "key_result_id")
    issues += check_number(inp.current_value, "current_value", minimum=0)
    if issues:
        return KeyResultOutput(error=AppError.validation(issues))

    loaded = _load_for_edit(ctx, inp.key_result_id, actor)
    if isinstance(loaded, AppError):
        return KeyResultOutput(error=loaded)
    key_result, okr = loaded

    updated = ctx.key_results.update(
        key_result.model_copy(
            update={"current_value": inp.current_value, "updated_at": ctx.clock.now_utc()}
        )
    )
    progress = _progress_of(ctx, okr)
    logger.info(
        "Key result %s progress %s -> %s (okr %s now %d%%)",
        key_result.id, key_result.current_value, inp.current_value, okr.id, progress,
    )
    return KeyResultOutput(key_result=updated, okr_progress=progress, success=True)


@repository_guard(KeyResultOutput, "Failed to delete key result")
def run_delete_key_result(inp: DeleteKeyResultInput, ctx: UseCaseContext) -> KeyResultOutput:
    actor = ctx.identity.current()
    if not actor:
        return KeyResultOutput(error=AppError.unauthenticated())

    issues = check_id(inp.key_result_id, "key_result_id")
    if issues:
        return KeyResultOutput(error=AppError.validation(issues))

    loaded = _load_for_edit(ctx, inp.key_result_id, actor)
    if isinstance(loaded, AppError):
        return KeyResultOutput(error=loaded)
    key_result, okr = loaded

    minimum = ctx.rules.okrs.key_results.min
    if len(ctx.key_results.list_by_okr(okr.id)) <= minimum:
        return KeyResultOutput(
            error=AppError.conflict(
                f"An OKR needs at least {minimum} key result(s)", resource=f"okr:{okr.id}"
            )
        )

    ctx.key_results.delete(key_result.id)
    return KeyResultOutput(key_result=key_result, okr_progress=_progress_of(ctx, okr), success=True)
