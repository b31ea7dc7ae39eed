from dataclasses import dataclass, field

from src.domain.entities import Team, TeamId, TeamMember, TeamMemberWithUser, TeamRole, UserId
from src.domain.errors import AppError


@dataclass(frozen=True)
class CreateTeamInput:
    name: str
    description: str | None = None
    review_frequency: str | None = None


@dataclass(frozen=True)
class UpdateTeamInput:
    team_id: TeamId
    name: str | None = None
    description: str | None = None
    review_frequency: str | None = None


@dataclass(frozen=True)
class GetTeamInput:
    team_id: TeamId


@dataclass(frozen=True)
class DeleteTeamInput:
    team_id: TeamId


@dataclass(frozen=True)
class ListMembersInput:
    team_id: TeamId
    page: int = 1
    limit: int | None = None
    role: str | None = None


@dataclass(frozen=True)
class UpdateMemberRoleInput:
    team_id: TeamId
    target_user_id: UserId
    role: str


@dataclass(frozen=True)
class RemoveMemberInput:
    team_id: TeamId
    target_user_id: UserId


@dataclass(frozen=True)
class TeamSummary:
    team: Team
    role: TeamRole
    member_count: int


@dataclass(frozen=True)
class TeamOutput:
    team: Team | None = None
    role: TeamRole | None = None
    member_count: int = 0
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class TeamListOutput:
    teams: list[TeamSummary] = field(default_factory=list)
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class MemberOutput:
    member: TeamMember | None = None
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class MemberListOutput:
    members: list[TeamMemberWithUser] = field(default_factory=list)
    total: int = 0
    success: bool = False
    error: AppError | None = None
