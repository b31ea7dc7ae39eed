from dataclasses import dataclass, field

from src.domain.entities import KeyResult, KeyResultId, OkrId, OkrWithKeyResults, TeamId, UserId
from src.domain.errors import AppError


@dataclass(frozen=True)
class KeyResultDraft:
    title: str
    target_value: float
    unit: str | None = None
    current_value: float = 0


@dataclass(frozen=True)
class CreateOkrInput:
    team_id: TeamId
    title: str
    type: str
    quarter_year: int
    quarter_quarter: int
    key_results: list[KeyResultDraft] = field(default_factory=list)
    description: str | None = None
    # Defaults to the caller; only admins may assign another member.
    owner_id: UserId | None = None


@dataclass(frozen=True)
class UpdateOkrInput:
    okr_id: OkrId
    title: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class GetOkrInput:
    okr_id: OkrId


@dataclass(frozen=True)
class DeleteOkrInput:
    okr_id: OkrId


@dataclass(frozen=True)
class ListTeamOkrsInput:
    team_id: TeamId
    quarter_year: int | None = None
    quarter_quarter: int | None = None


@dataclass(frozen=True)
class SearchOkrsInput:
    query: str = ""
    team_id: TeamId | None = None
    owner_id: UserId | None = None
    type: str | None = None
    year: int | None = None
    quarter: int | None = None
    page: int = 1
    limit: int | None = None


@dataclass(frozen=True)
class AddKeyResultInput:
    okr_id: OkrId
    title: str
    target_value: float
    unit: str | None = None
    current_value: float = 0


@dataclass(frozen=True)
class UpdateKeyResultInput:
    key_result_id: KeyResultId
    title: str | None = None
    target_value: float | None = None
    unit: str | None = None


@dataclass(frozen=True)
class UpdateKeyResultProgressInput:
    key_result_id: KeyResultId
    current_value: float


@dataclass(frozen=True)
class DeleteKeyResultInput:
    key_result_id: KeyResultId


@dataclass(frozen=True)
class OkrOutput:
    okr: OkrWithKeyResults | None = None
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class OkrListOutput:
    okrs: list[OkrWithKeyResults] = field(default_factory=list)
    total: int = 0
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class KeyResultOutput:
    key_result: KeyResult | None = None
    # Parent OKR progress after the change
    okr_progress: int | None = None
    success: bool = False
    error: AppError | None = None
