"""Shared OKR helpers: read-model assembly and key result validation."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from typing import Any

from src.domain.entities import KeyResult, Okr, OkrWithKeyResults
from src.domain.errors import ValidationIssue
from src.domain.progress import compute_progress, compute_status
from src.domain.validation import check_number, check_text

from ..context import UseCaseContext


def with_key_results(okr: Okr, key_results: Sequence[KeyResult], today: date) -> OkrWithKeyResults:
    progress = compute_progress(key_results)
    return OkrWithKeyResults(
        **okr.model_dump(include=set(Okr.model_fields)),
        key_results=sorted(key_results, key=lambda kr: kr.created_at),
        progress=progress,
        status=compute_status(okr.quarter_year, okr.quarter_quarter, progress, today),
    )


def assemble(ctx: UseCaseContext, okr: Okr) -> OkrWithKeyResults:
    return with_key_results(okr, ctx.key_results.list_by_okr(okr.id), ctx.clock.today())


def assemble_many(ctx: UseCaseContext, okrs: Sequence[Okr]) -> list[OkrWithKeyResults]:
    if not okrs:
        return []
    by_okr: dict[str, list[KeyResult]] = defaultdict(list)
    for kr in ctx.key_results.list_by_okrs([o.id for o in okrs]):
        by_okr[kr.okr_id].append(kr)
    today = ctx.clock.today()
    return [with_key_results(o, by_okr[o.id], today) for o in okrs]


def validate_key_result(
    ctx: UseCaseContext,
    prefix: str,
    *,
    title: Any = None,
    target_value: Any = None,
    unit: Any = None,
    current_value: Any = None,
    partial: bool = False,
) -> list[ValidationIssue]:
    """
    Validate key result fields. With ``partial`` only fields that are not
    None are checked (updates); otherwise title and target are required.
    """
    rules = ctx.rules.okrs
    issues: list[ValidationIssue] = []
    if not partial or title is not None:
        issues += check_text(title, f"{prefix}title", rules.key_result_title)
    if not partial or target_value is not None:
        issues += check_number(target_value, f"{prefix}target_value", minimum=0, exclusive=True)
    if unit is not None:
        issues += check_text(unit, f"{prefix}unit", rules.unit, required=False)
    if current_value is not None:
        issues += check_number(current_value, f"{prefix}current_value", minimum=0)
    return issues
