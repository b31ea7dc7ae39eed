"""
Repository ports, one per entity.

Expected outcomes (missing row, duplicate key, guarded write that lost a
race) are return values: ``None`` or ``False``. Anything else an adapter
cannot handle is raised as ``RepositoryError`` with the original exception
chained as its cause.
"""

import builtins
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Protocol, TypeVar

from src.domain.entities import (
    Invitation,
    InvitationId,
    InvitationStatus,
    InvitationWithTeam,
    KeyResult,
    KeyResultId,
    Notification,
    NotificationId,
    NotificationSettings,
    Okr,
    OkrId,
    OkrType,
    Review,
    ReviewId,
    ReviewType,
    Team,
    TeamId,
    TeamMember,
    TeamMemberWithUser,
    TeamRole,
    User,
    UserId,
)

T = TypeVar("T")


class RepositoryError(Exception):
    """Unexpected storage failure. The message is safe to log, not to show."""


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int


@dataclass
class NotificationPage:
    items: list[Notification]
    total: int
    unread_count: int


@dataclass(frozen=True)
class Quarter:
    year: int
    quarter: int


@dataclass
class OkrFilter:
    """
    Filter for listing/searching OKRs.

    ``team_ids`` limits results to those teams (None = no limit). When
    ``viewer_id`` is set, personal OKRs are only included if owned by the
    viewer or if the team is in ``admin_team_ids``.
    """

    team_ids: Sequence[TeamId] | None = None
    owner_id: UserId | None = None
    type: OkrType | None = None
    year: int | None = None
    quarter: int | None = None
    viewer_id: UserId | None = None
    admin_team_ids: Sequence[TeamId] = field(default_factory=list)


class UserRepoPort(Protocol):
    def get_by_id(self, user_id: UserId) -> User | None:
        ...

    def get_by_email(self, email: str) -> User | None:
        ...

    def save(self, user: User) -> User:
        ...


class TeamRepoPort(Protocol):
    def create(self, team: Team) -> Team:
        ...

    def get_by_id(self, team_id: TeamId) -> Team | None:
        ...

    def update(self, team: Team) -> Team:
        ...

    def delete(self, team_id: TeamId) -> None:
        """Delete a team; members, invitations and OKRs go with it."""
        ...

    def list(self, page: int, limit: int, name: str | None = None) -> Page[Team]:
        ...

    def list_by_user(self, user_id: UserId) -> builtins.list[Team]:
        ...


class TeamMemberRepoPort(Protocol):
    def add(self, member: TeamMember) -> bool:
        """Insert if (team_id, user_id) is absent. Returns False if it already existed."""
        ...

    def get_by_team_and_user(self, team_id: TeamId, user_id: UserId) -> TeamMember | None:
        ...

    def update_role(self, team_id: TeamId, user_id: UserId, role: TeamRole) -> TeamMember | None:
        ...

    def delete(self, team_id: TeamId, user_id: UserId) -> bool:
        ...

    def list(
        self,
        team_id: TeamId,
        page: int,
        limit: int,
        role: TeamRole | None = None,
    ) -> Page[TeamMemberWithUser]:
        ...

    def list_by_user(self, user_id: UserId) -> builtins.list[TeamMember]:
        ...

    def count_by_team(self, team_id: TeamId, role: TeamRole | None = None) -> int:
        ...


class InvitationRepoPort(Protocol):
    def create_pending(self, invitation: Invitation) -> Invitation | None:
        """
        Insert a pending invitation unless one is already pending for
        (team_id, invited_email). Returns None in that case.
        """
        ...

    def get_by_id(self, invitation_id: InvitationId) -> InvitationWithTeam | None:
        ...

    def get_pending(self, team_id: TeamId, email: str) -> Invitation | None:
        ...

    def accept(
        self, invitation_id: InvitationId, member: TeamMember, now: datetime
    ) -> Invitation | None:
        """
        Atomically move a pending invitation to accepted and insert the
        membership if absent. Returns None (and writes nothing) if the
        invitation was no longer pending.
        """
        ...

    def reject(self, invitation_id: InvitationId, now: datetime) -> Invitation | None:
        """Move a pending invitation to rejected. None if it was not pending."""
        ...

    def delete(self, invitation_id: InvitationId) -> None:
        ...

    def list(
        self,
        page: int,
        limit: int,
        team_id: TeamId | None = None,
        invited_email: str | None = None,
        status: InvitationStatus | None = None,
    ) -> Page[InvitationWithTeam]:
        ...


class OkrRepoPort(Protocol):
    def create(self, okr: Okr) -> Okr:
        ...

    def get_by_id(self, okr_id: OkrId) -> Okr | None:
        ...

    def update(self, okr: Okr) -> Okr:
        ...

    def delete(self, okr_id: OkrId) -> None:
        """Delete an OKR together with its key results and reviews."""
        ...

    def list(self, page: int, limit: int, okr_filter: OkrFilter | None = None) -> Page[Okr]:
        ...

    def list_by_team(
        self, team_id: TeamId, quarter: Quarter | None = None
    ) -> builtins.list[Okr]:
        ...

    def list_by_user(
        self, user_id: UserId, quarter: Quarter | None = None
    ) -> builtins.list[Okr]:
        ...

    def count_by_team(self, team_id: TeamId) -> int:
        ...

    def search(
        self,
        query: str,
        okr_filter: OkrFilter,
        page: int,
        limit: int,
    ) -> Page[Okr]:
        """Case-insensitive match on title or description, newest first."""
        ...


class KeyResultRepoPort(Protocol):
    def create(self, key_result: KeyResult) -> KeyResult:
        ...

    def get_by_id(self, key_result_id: KeyResultId) -> KeyResult | None:
        ...

    def update(self, key_result: KeyResult) -> KeyResult:
        ...

    def delete(self, key_result_id: KeyResultId) -> None:
        ...

    def list_by_okr(self, okr_id: OkrId) -> list[KeyResult]:
        ...

    def list_by_okrs(self, okr_ids: Sequence[OkrId]) -> list[KeyResult]:
        ...


class ReviewRepoPort(Protocol):
    def create(self, review: Review) -> Review:
        ...

    def get_by_id(self, review_id: ReviewId) -> Review | None:
        ...

    def update(self, review: Review) -> Review:
        ...

    def delete(self, review_id: ReviewId) -> None:
        ...

    def list(
        self,
        page: int,
        limit: int,
        okr_id: OkrId | None = None,
        review_type: ReviewType | None = None,
        reviewer_id: UserId | None = None,
    ) -> Page[Review]:
        """Oldest first."""
        ...


class NotificationRepoPort(Protocol):
    def save(self, notification: Notification) -> Notification:
        ...

    def get_by_id(self, notification_id: NotificationId) -> Notification | None:
        ...

    def list_by_user(
        self,
        user_id: UserId,
        page: int,
        limit: int,
        unread_only: bool = False,
    ) -> NotificationPage:
        ...

    def mark_as_read(self, notification_id: NotificationId) -> bool:
        ...

    def mark_all_as_read(self, user_id: UserId) -> int:
        ...

    def get_settings(self, user_id: UserId) -> NotificationSettings | None:
        ...

    def save_settings(self, settings: NotificationSettings) -> NotificationSettings:
        ...
