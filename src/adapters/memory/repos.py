"""In-memory repositories.

All repos built from one ``MemoryStore`` share its tables and its lock, so
joins (members with users, invitations with teams) and cascades work the
way they do in SQLite. Each method holds the lock for its whole body, which
makes the guarded writes (``add``, ``create_pending``, ``accept``) atomic.
"""

import builtins
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar

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
from src.domain.state import can_transition, transition
from src.ports.repo import NotificationPage, OkrFilter, Page, Quarter, RepositoryError

T = TypeVar("T")


@dataclass
class MemoryStore:
    users: dict[UserId, User] = field(default_factory=dict)
    teams: dict[TeamId, Team] = field(default_factory=dict)
    members: dict[tuple[TeamId, UserId], TeamMember] = field(default_factory=dict)
    invitations: dict[InvitationId, Invitation] = field(default_factory=dict)
    okrs: dict[OkrId, Okr] = field(default_factory=dict)
    key_results: dict[KeyResultId, KeyResult] = field(default_factory=dict)
    reviews: dict[ReviewId, Review] = field(default_factory=dict)
    notifications: dict[NotificationId, Notification] = field(default_factory=dict)
    settings: dict[UserId, NotificationSettings] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)


def _paginate(items: builtins.list[T], page: int, limit: int) -> Page[T]:
    start = (page - 1) * limit
    return Page(items[start : start + limit], len(items))


def _newest_first(items: Iterable[T], key: Callable[[T], datetime]) -> builtins.list[T]:
    # Dicts keep insertion order; reversing it breaks created_at ties newest-first.
    return sorted(reversed(builtins.list(items)), key=key, reverse=True)


class _MemoryRepo:
    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()


class MemoryUserRepo(_MemoryRepo):
    def get_by_id(self, user_id: UserId) -> User | None:
        with self.store.lock:
            return self.store.users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        with self.store.lock:
            return next((u for u in self.store.users.values() if u.email == email), None)

    def save(self, user: User) -> User:
        with self.store.lock:
            self.store.users[user.id] = user.model_copy(update={"email": user.email.strip().lower()})
        return user


class MemoryTeamRepo(_MemoryRepo):
    def create(self, team: Team) -> Team:
        with self.store.lock:
            self.store.teams[team.id] = team
        return team

    def get_by_id(self, team_id: TeamId) -> Team | None:
        with self.store.lock:
            return self.store.teams.get(team_id)

    def update(self, team: Team) -> Team:
        with self.store.lock:
            if team.id in self.store.teams:
                self.store.teams[team.id] = team
        return team

    def delete(self, team_id: TeamId) -> None:
        s = self.store
        with s.lock:
            s.teams.pop(team_id, None)
            for key in [k for k in s.members if k[0] == team_id]:
                del s.members[key]
            for inv_id in [i.id for i in s.invitations.values() if i.team_id == team_id]:
                del s.invitations[inv_id]
            for okr_id in [o.id for o in s.okrs.values() if o.team_id == team_id]:
                MemoryOkrRepo(s).delete(okr_id)

    def list(self, page: int, limit: int, name: str | None = None) -> Page[Team]:
        with self.store.lock:
            teams = builtins.list(self.store.teams.values())
        if name:
            teams = [t for t in teams if name.lower() in t.name.lower()]
        return _paginate(_newest_first(teams, lambda t: t.created_at), page, limit)

    def list_by_user(self, user_id: UserId) -> builtins.list[Team]:
        with self.store.lock:
            team_ids = {k[0] for k in self.store.members if k[1] == user_id}
            teams = [t for t in self.store.teams.values() if t.id in team_ids]
        return sorted(teams, key=lambda t: t.created_at)


class MemoryTeamMemberRepo(_MemoryRepo):
    def add(self, member: TeamMember) -> bool:
        key = (member.team_id, member.user_id)
        with self.store.lock:
            if key in self.store.members:
                return False
            self.store.members[key] = member
            return True

    def get_by_team_and_user(self, team_id: TeamId, user_id: UserId) -> TeamMember | None:
        with self.store.lock:
            return self.store.members.get((team_id, user_id))

    def update_role(self, team_id: TeamId, user_id: UserId, role: TeamRole) -> TeamMember | None:
        key = (team_id, user_id)
        with self.store.lock:
            member = self.store.members.get(key)
            if member is None:
                return None
            updated = member.model_copy(update={"role": role})
            self.store.members[key] = updated
            return updated

    def delete(self, team_id: TeamId, user_id: UserId) -> bool:
        with self.store.lock:
            return self.store.members.pop((team_id, user_id), None) is not None

    def list(
        self,
        team_id: TeamId,
        page: int,
        limit: int,
        role: TeamRole | None = None,
    ) -> Page[TeamMemberWithUser]:
        with self.store.lock:
            rows = []
            for (tid, uid), m in self.store.members.items():
                user = self.store.users.get(uid)
                if tid != team_id or user is None or (role and m.role != role):
                    continue
                rows.append(
                    TeamMemberWithUser(
                        **m.model_dump(), display_name=user.display_name, email=user.email
                    )
                )
        rows.sort(key=lambda m: m.joined_at)
        return _paginate(rows, page, limit)

    def list_by_user(self, user_id: UserId) -> builtins.list[TeamMember]:
        with self.store.lock:
            rows = [m for (_, uid), m in self.store.members.items() if uid == user_id]
        return sorted(rows, key=lambda m: m.joined_at)

    def count_by_team(self, team_id: TeamId, role: TeamRole | None = None) -> int:
        with self.store.lock:
            return sum(
                1
                for (tid, _), m in self.store.members.items()
                if tid == team_id and (role is None or m.role == role)
            )


class MemoryInvitationRepo(_MemoryRepo):
    def _with_team(self, invitation: Invitation) -> InvitationWithTeam | None:
        team = self.store.teams.get(invitation.team_id)
        inviter = self.store.users.get(invitation.invited_by_id)
        if team is None or inviter is None:
            return None
        return InvitationWithTeam(
            **invitation.model_dump(),
            team_name=team.name,
            team_description=team.description,
            invited_by_name=inviter.display_name,
            invited_by_email=inviter.email,
        )

    def _pending(self, team_id: TeamId, email: str) -> Invitation | None:
        return next(
            (
                i
                for i in self.store.invitations.values()
                if i.team_id == team_id and i.invited_email == email and i.status == "pending"
            ),
            None,
        )

    def create_pending(self, invitation: Invitation) -> Invitation | None:
        pending = invitation.model_copy(
            update={"status": "pending", "invited_email": invitation.invited_email.lower()}
        )
        with self.store.lock:
            # Same refusal as the team and inviter foreign keys in SQLite.
            if pending.team_id not in self.store.teams:
                raise RepositoryError(f"Unknown team {pending.team_id}")
            if pending.invited_by_id not in self.store.users:
                raise RepositoryError(f"Unknown inviter {pending.invited_by_id}")
            if self._pending(pending.team_id, pending.invited_email):
                return None
            self.store.invitations[pending.id] = pending
        return pending

    def get_by_id(self, invitation_id: InvitationId) -> InvitationWithTeam | None:
        with self.store.lock:
            invitation = self.store.invitations.get(invitation_id)
            return self._with_team(invitation) if invitation else None

    def get_pending(self, team_id: TeamId, email: str) -> Invitation | None:
        with self.store.lock:
            return self._pending(team_id, email.lower())

    def _transition(
        self, invitation_id: InvitationId, status: InvitationStatus, now: datetime
    ) -> Invitation | None:
        invitation = self.store.invitations.get(invitation_id)
        if invitation is None or not can_transition(invitation.status, status):
            return None
        updated = transition(invitation, status, now)
        self.store.invitations[invitation_id] = updated
        return updated

    def accept(
        self, invitation_id: InvitationId, member: TeamMember, now: datetime
    ) -> Invitation | None:
        with self.store.lock:
            updated = self._transition(invitation_id, "accepted", now)
            if updated is not None:
                self.store.members.setdefault((member.team_id, member.user_id), member)
            return updated

    def reject(self, invitation_id: InvitationId, now: datetime) -> Invitation | None:
        with self.store.lock:
            return self._transition(invitation_id, "rejected", now)

    def delete(self, invitation_id: InvitationId) -> None:
        with self.store.lock:
            self.store.invitations.pop(invitation_id, None)

    def list(
        self,
        page: int,
        limit: int,
        team_id: TeamId | None = None,
        invited_email: str | None = None,
        status: InvitationStatus | None = None,
    ) -> Page[InvitationWithTeam]:
        email = invited_email.lower() if invited_email else None
        with self.store.lock:
            rows = [
                joined
                for i in self.store.invitations.values()
                if (not team_id or i.team_id == team_id)
                and (not email or i.invited_email == email)
                and (not status or i.status == status)
                and (joined := self._with_team(i)) is not None
            ]
        return _paginate(_newest_first(rows, lambda i: i.created_at), page, limit)


def _matches(okr: Okr, okr_filter: OkrFilter | None) -> bool:
    if okr_filter is None:
        return True
    f = okr_filter
    if f.team_ids is not None and okr.team_id not in f.team_ids:
        return False
    if f.owner_id and okr.owner_id != f.owner_id:
        return False
    if f.type and okr.type != f.type:
        return False
    if f.year is not None and okr.quarter_year != f.year:
        return False
    if f.quarter is not None and okr.quarter_quarter != f.quarter:
        return False
    if f.viewer_id and okr.type == "personal":
        return okr.owner_id == f.viewer_id or okr.team_id in f.admin_team_ids
    return True


def _in_quarter(okr: Okr, quarter: Quarter | None) -> bool:
    return quarter is None or (okr.quarter_year, okr.quarter_quarter) == (
        quarter.year,
        quarter.quarter,
    )


class MemoryOkrRepo(_MemoryRepo):
    def create(self, okr: Okr) -> Okr:
        with self.store.lock:
            self.store.okrs[okr.id] = okr
        return okr

    def get_by_id(self, okr_id: OkrId) -> Okr | None:
        with self.store.lock:
            return self.store.okrs.get(okr_id)

    def update(self, okr: Okr) -> Okr:
        with self.store.lock:
            if okr.id in self.store.okrs:
                self.store.okrs[okr.id] = okr
        return okr

    def delete(self, okr_id: OkrId) -> None:
        s = self.store
        with s.lock:
            s.okrs.pop(okr_id, None)
            for kr_id in [k.id for k in s.key_results.values() if k.okr_id == okr_id]:
                del s.key_results[kr_id]
            for review_id in [r.id for r in s.reviews.values() if r.okr_id == okr_id]:
                del s.reviews[review_id]

    def _select(self, predicate: Callable[[Okr], bool]) -> builtins.list[Okr]:
        with self.store.lock:
            okrs = [o for o in self.store.okrs.values() if predicate(o)]
        return _newest_first(okrs, lambda o: o.created_at)

    def list(self, page: int, limit: int, okr_filter: OkrFilter | None = None) -> Page[Okr]:
        return _paginate(self._select(lambda o: _matches(o, okr_filter)), page, limit)

    def list_by_team(self, team_id: TeamId, quarter: Quarter | None = None) -> builtins.list[Okr]:
        return self._select(lambda o: o.team_id == team_id and _in_quarter(o, quarter))

    def list_by_user(self, user_id: UserId, quarter: Quarter | None = None) -> builtins.list[Okr]:
        return self._select(lambda o: o.owner_id == user_id and _in_quarter(o, quarter))

    def count_by_team(self, team_id: TeamId) -> int:
        with self.store.lock:
            return sum(1 for o in self.store.okrs.values() if o.team_id == team_id)

    def search(
        self,
        query: str,
        okr_filter: OkrFilter,
        page: int,
        limit: int,
    ) -> Page[Okr]:
        needle = query.lower()

        def hit(o: Okr) -> bool:
            text_match = needle in o.title.lower() or needle in (o.description or "").lower()
            return _matches(o, okr_filter) and (not needle or text_match)

        return _paginate(self._select(hit), page, limit)


class MemoryKeyResultRepo(_MemoryRepo):
    def create(self, key_result: KeyResult) -> KeyResult:
        with self.store.lock:
            self.store.key_results[key_result.id] = key_result
        return key_result

    def get_by_id(self, key_result_id: KeyResultId) -> KeyResult | None:
        with self.store.lock:
            return self.store.key_results.get(key_result_id)

    def update(self, key_result: KeyResult) -> KeyResult:
        with self.store.lock:
            if key_result.id in self.store.key_results:
                self.store.key_results[key_result.id] = key_result
        return key_result

    def delete(self, key_result_id: KeyResultId) -> None:
        with self.store.lock:
            self.store.key_results.pop(key_result_id, None)

    def list_by_okr(self, okr_id: OkrId) -> builtins.list[KeyResult]:
        return self.list_by_okrs([okr_id])

    def list_by_okrs(self, okr_ids: Sequence[OkrId]) -> builtins.list[KeyResult]:
        wanted = set(okr_ids)
        with self.store.lock:
            rows = [k for k in self.store.key_results.values() if k.okr_id in wanted]
        return sorted(rows, key=lambda k: k.created_at)


class MemoryReviewRepo(_MemoryRepo):
    def create(self, review: Review) -> Review:
        with self.store.lock:
            self.store.reviews[review.id] = review
        return review

    def get_by_id(self, review_id: ReviewId) -> Review | None:
        with self.store.lock:
            return self.store.reviews.get(review_id)

    def update(self, review: Review) -> Review:
        with self.store.lock:
            if review.id in self.store.reviews:
                self.store.reviews[review.id] = review
        return review

    def delete(self, review_id: ReviewId) -> None:
        with self.store.lock:
            self.store.reviews.pop(review_id, None)

    def list(
        self,
        page: int,
        limit: int,
        okr_id: OkrId | None = None,
        review_type: ReviewType | None = None,
        reviewer_id: UserId | None = None,
    ) -> Page[Review]:
        with self.store.lock:
            rows = [
                r
                for r in self.store.reviews.values()
                if (not okr_id or r.okr_id == okr_id)
                and (not review_type or r.type == review_type)
                and (not reviewer_id or r.reviewer_id == reviewer_id)
            ]
        return _paginate(sorted(rows, key=lambda r: r.created_at), page, limit)


class MemoryNotificationRepo(_MemoryRepo):
    def save(self, notification: Notification) -> Notification:
        with self.store.lock:
            self.store.notifications[notification.id] = notification
        return notification

    def get_by_id(self, notification_id: NotificationId) -> Notification | None:
        with self.store.lock:
            return self.store.notifications.get(notification_id)

    def list_by_user(
        self,
        user_id: UserId,
        page: int,
        limit: int,
        unread_only: bool = False,
    ) -> NotificationPage:
        with self.store.lock:
            mine = [n for n in self.store.notifications.values() if n.user_id == user_id]
        unread = [n for n in mine if not n.is_read]
        rows = _newest_first(unread if unread_only else mine, lambda n: n.created_at)
        page_ = _paginate(rows, page, limit)
        return NotificationPage(items=page_.items, total=page_.total, unread_count=len(unread))

    def mark_as_read(self, notification_id: NotificationId) -> bool:
        with self.store.lock:
            notification = self.store.notifications.get(notification_id)
            if notification is None:
                return False
            self.store.notifications[notification_id] = notification.model_copy(
                update={"is_read": True}
            )
            return True

    def mark_all_as_read(self, user_id: UserId) -> int:
        with self.store.lock:
            unread = [
                n for n in self.store.notifications.values() if n.user_id == user_id and not n.is_read
            ]
            for n in unread:
                self.store.notifications[n.id] = n.model_copy(update={"is_read": True})
        return len(unread)

    def get_settings(self, user_id: UserId) -> NotificationSettings | None:
        with self.store.lock:
            return self.store.settings.get(user_id)

    def save_settings(self, settings: NotificationSettings) -> NotificationSettings:
        with self.store.lock:
            self.store.settings[settings.user_id] = settings
        return settings
