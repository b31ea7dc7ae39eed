from dataclasses import dataclass, field

from src.domain.entities import Invitation, InvitationId, InvitationWithTeam, TeamId, TeamMember
from src.domain.errors import AppError


@dataclass(frozen=True)
class InviteToTeamInput:
    team_id: TeamId
    email: str
    role: str = "member"


@dataclass(frozen=True)
class AcceptInvitationInput:
    invitation_id: InvitationId


@dataclass(frozen=True)
class RejectInvitationInput:
    invitation_id: InvitationId


@dataclass(frozen=True)
class GetInvitationInput:
    invitation_id: InvitationId


@dataclass(frozen=True)
class ListInvitationsInput:
    """All filters are optional and AND-combined."""

    team_id: TeamId | None = None
    invited_email: str | None = None
    status: str | None = None
    page: int = 1
    limit: int | None = None


@dataclass(frozen=True)
class InvitationOutput:
    invitation: Invitation | None = None
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class AcceptOutput:
    invitation: Invitation | None = None
    member: TeamMember | None = None
    # True when the membership already existed and nothing new was created
    already_member: bool = False
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class InvitationListOutput:
    invitations: list[InvitationWithTeam] = field(default_factory=list)
    total: int = 0
    success: bool = False
    error: AppError | None = None
