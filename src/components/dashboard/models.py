from dataclasses import dataclass, field

from src.domain.entities import OkrWithKeyResults
from src.domain.errors import AppError

from ..teams.models import TeamSummary


@dataclass(frozen=True)
class OkrStats:
    year: int
    quarter: int
    personal_okrs: int = 0
    team_okrs: int = 0
    average_progress: int = 0
    completed: int = 0
    due_soon: int = 0
    # Counted over every quarter, not just the current one
    overdue: int = 0


@dataclass(frozen=True)
class DashboardData:
    teams: list[TeamSummary]
    stats: OkrStats
    current_okrs: list[OkrWithKeyResults] = field(default_factory=list)
    unread_notifications: int = 0


@dataclass(frozen=True)
class DashboardOutput:
    data: DashboardData | None = None
    success: bool = False
    error: AppError | None = None
