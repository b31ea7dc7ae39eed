from datetime import UTC, datetime
from typing import Any, Literal, NewType
from uuid import uuid4

from pydantic import BaseModel, Field

# --- Ids ---
# Opaque, type-tagged string ids. Distinct NewTypes keep a TeamId from being
# passed where an OkrId is expected.

UserId = NewType("UserId", str)
TeamId = NewType("TeamId", str)
InvitationId = NewType("InvitationId", str)
OkrId = NewType("OkrId", str)
KeyResultId = NewType("KeyResultId", str)
ReviewId = NewType("ReviewId", str)
NotificationId = NewType("NotificationId", str)


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Enums / Literals ---
TeamRole = Literal["admin", "member", "viewer"]
ReviewFrequency = Literal["weekly", "biweekly", "monthly"]
InvitationStatus = Literal["pending", "accepted", "rejected"]
OkrType = Literal["team", "personal"]
ReviewType = Literal["progress", "final"]
OkrStatus = Literal["active", "completed", "overdue", "due_soon"]
NotificationType = Literal["invitation", "review_reminder", "progress_update", "team_update"]
Action = Literal[
    "view",
    "create_okr",
    "edit_okr",
    "delete_okr",
    "create_review",
    "edit_review",
    "delete_review",
    "invite_member",
    "change_role",
    "remove_member",
    "edit_team_settings",
    "delete_team",
]

# --- User ---

class User(BaseModel):
    id: UserId = Field(default_factory=lambda: UserId(new_id()))
    email: str
    display_name: str
    password_hash: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Teams ---

class Team(BaseModel):
    id: TeamId = Field(default_factory=lambda: TeamId(new_id()))
    name: str
    description: str | None = None
    review_frequency: ReviewFrequency = "monthly"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class TeamMember(BaseModel):
    team_id: TeamId
    user_id: UserId
    role: TeamRole
    joined_at: datetime = Field(default_factory=utcnow)

class TeamMemberWithUser(TeamMember):
    display_name: str
    email: str

class Invitation(BaseModel):
    id: InvitationId = Field(default_factory=lambda: InvitationId(new_id()))
    team_id: TeamId
    invited_email: str
    invited_by_id: UserId
    role: TeamRole = "member"
    status: InvitationStatus = "pending"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class InvitationWithTeam(Invitation):
    team_name: str
    team_description: str | None = None
    invited_by_name: str
    invited_by_email: str

# --- OKRs ---

class KeyResult(BaseModel):
    id: KeyResultId = Field(default_factory=lambda: KeyResultId(new_id()))
    okr_id: OkrId
    title: str
    target_value: float
    current_value: float = 0
    unit: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class Okr(BaseModel):
    id: OkrId = Field(default_factory=lambda: OkrId(new_id()))
    title: str
    description: str | None = None
    type: OkrType
    team_id: TeamId
    owner_id: UserId
    quarter_year: int
    quarter_quarter: int
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class OkrWithKeyResults(Okr):
    """Read model: an Okr with its key results and derived progress/status."""
    key_results: list[KeyResult] = Field(default_factory=list)
    progress: int = 0
    status: OkrStatus = "active"

class Review(BaseModel):
    id: ReviewId = Field(default_factory=lambda: ReviewId(new_id()))
    okr_id: OkrId
    type: ReviewType
    content: str
    reviewer_id: UserId
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Notifications ---

class NotificationSettings(BaseModel):
    user_id: UserId
    invitations: bool = True
    review_reminders: bool = True
    progress_updates: bool = True
    team_updates: bool = True

class Notification(BaseModel):
    id: NotificationId = Field(default_factory=lambda: NotificationId(new_id()))
    user_id: UserId
    type: NotificationType
    title: str
    message: str
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)
