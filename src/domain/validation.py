"""
Input validation helpers shared by the use-case components.

Each helper returns a (possibly empty) list of ``ValidationIssue`` so callers
can collect every problem in one pass and report them together.
"""

from __future__ import annotations

import math
import re
from collections.abc import Collection
from typing import Any

from src.domain.errors import ValidationIssue
from src.rules.models import PaginationRules, RangeRule

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_text(
    value: Any,
    field: str,
    rule: RangeRule,
    *,
    required: bool = True,
) -> list[ValidationIssue]:
    if value is None:
        if required:
            return [ValidationIssue(field, "required", f"{field} is required")]
        return []

    if not isinstance(value, str):
        return [ValidationIssue(field, "invalid_type", f"{field} must be a string")]

    # Required fields are stored stripped, optional ones as given.
    length = len(value.strip()) if required else len(value)
    if length < rule.min:
        if rule.min <= 1:
            return [ValidationIssue(field, "required", f"{field} is required")]
        return [
            ValidationIssue(field, "too_short", f"{field} must be at least {rule.min} characters")
        ]
    if length > rule.max:
        return [
            ValidationIssue(field, "too_long", f"{field} must be at most {rule.max} characters")
        ]
    return []


def check_choice(value: Any, field: str, allowed: Collection[str]) -> list[ValidationIssue]:
    if value not in allowed:
        options = ", ".join(sorted(allowed))
        return [ValidationIssue(field, "invalid_choice", f"{field} must be one of: {options}")]
    return []


def check_int_range(value: Any, field: str, low: int, high: int) -> list[ValidationIssue]:
    if isinstance(value, bool) or not isinstance(value, int):
        return [ValidationIssue(field, "invalid_type", f"{field} must be an integer")]
    if value < low or value > high:
        return [ValidationIssue(field, "out_of_range", f"{field} must be between {low} and {high}")]
    return []


def check_number(
    value: Any,
    field: str,
    *,
    minimum: float = 0,
    exclusive: bool = False,
) -> list[ValidationIssue]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return [ValidationIssue(field, "invalid_type", f"{field} must be a number")]
    if not math.isfinite(value):
        return [ValidationIssue(field, "invalid_number", f"{field} must be a finite number")]
    if exclusive and value <= minimum:
        return [ValidationIssue(field, "out_of_range", f"{field} must be greater than {minimum:g}")]
    if not exclusive and value < minimum:
        return [ValidationIssue(field, "out_of_range", f"{field} must be at least {minimum:g}")]
    return []


def check_email(value: Any, field: str) -> list[ValidationIssue]:
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()):
        return [ValidationIssue(field, "invalid_email", f"{field} must be a valid email address")]
    return []


def check_id(value: Any, field: str) -> list[ValidationIssue]:
    if not isinstance(value, str) or not value.strip():
        return [ValidationIssue(field, "required", f"{field} is required")]
    return []


def check_pagination(page: Any, limit: Any, rules: PaginationRules) -> list[ValidationIssue]:
    issues = check_int_range(page, "page", 1, 2**31 - 1)
    issues += check_int_range(limit, "limit", 1, rules.max_limit)
    return issues
