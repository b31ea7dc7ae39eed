"""
OKR aggregation: progress percentage and status derived from quarter.

Progress is computed with ``Fraction`` so that exact ``.5`` means round up
regardless of float representation (35/50 must give exactly 70).
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterable
from datetime import date
from fractions import Fraction
from typing import Protocol

from src.domain.entities import OkrStatus


class ProgressLike(Protocol):
    target_value: float
    current_value: float


def key_result_contribution(kr: ProgressLike) -> Fraction:
    """Percentage contribution of one key result, clamped to [0, 100]."""
    target = Fraction(kr.target_value)
    if target <= 0:
        return Fraction(0)
    current = max(Fraction(kr.current_value), Fraction(0))
    return min(current / target, Fraction(1)) * 100


def compute_progress(key_results: Iterable[ProgressLike]) -> int:
    """Mean of key result contributions, rounded half up. Empty list -> 0."""
    contributions = [key_result_contribution(kr) for kr in key_results]
    if not contributions:
        return 0
    mean = sum(contributions, Fraction(0)) / len(contributions)
    return math.floor(mean + Fraction(1, 2))


def quarter_start(year: int, quarter: int) -> date:
    return date(year, 3 * quarter - 2, 1)


def quarter_end(year: int, quarter: int) -> date:
    """Last calendar day of month 3*quarter."""
    month = 3 * quarter
    return date(year, month, calendar.monthrange(year, month)[1])


def current_quarter(today: date) -> tuple[int, int]:
    return today.year, (today.month - 1) // 3 + 1


def compute_status(year: int, quarter: int, progress: int, today: date) -> OkrStatus:
    if progress >= 100:
        return "completed"
    if quarter_end(year, quarter) < today:
        return "overdue"
    if quarter_start(year, quarter) <= today:
        return "due_soon"
    return "active"
