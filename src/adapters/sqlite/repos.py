import builtins
import json
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any

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
from src.ports.repo import NotificationPage, OkrFilter, Page, Quarter, RepositoryError


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _dt(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def _like(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


def _placeholders(n: int) -> str:
    return ", ".join("?" * n)


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        """One connection, one transaction. sqlite3 errors become RepositoryError."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise RepositoryError(f"Cannot open database {self.db_path}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RepositoryError(f"{type(self).__name__}: {e}") from e
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Users ---


def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=UserId(row["id"]),
        email=row["email"],
        display_name=row["display_name"],
        password_hash=row["password_hash"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


class SQLiteUserRepo(_SQLiteRepo):
    def get_by_id(self, user_id: UserId) -> User | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
        return _row_to_user(row) if row else None

    def save(self, user: User) -> User:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, display_name, password_hash, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    display_name=excluded.display_name,
                    password_hash=excluded.password_hash,
                    updated_at=excluded.updated_at
            """,
                (
                    user.id,
                    user.email.strip().lower(),
                    user.display_name,
                    user.password_hash,
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )
        return user


# --- Teams ---


def _row_to_team(row: dict[str, Any]) -> Team:
    return Team(
        id=TeamId(row["id"]),
        name=row["name"],
        description=row["description"],
        review_frequency=row["review_frequency"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


class SQLiteTeamRepo(_SQLiteRepo):
    def create(self, team: Team) -> Team:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO teams (id, name, description, review_frequency, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    team.id,
                    team.name,
                    team.description,
                    team.review_frequency,
                    team.created_at.isoformat(),
                    team.updated_at.isoformat(),
                ),
            )
        return team

    def get_by_id(self, team_id: TeamId) -> Team | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return _row_to_team(row) if row else None

    def update(self, team: Team) -> Team:
        with self._conn() as conn:
            conn.execute(
                """
                UPDATE teams SET name = ?, description = ?, review_frequency = ?, updated_at = ?
                WHERE id = ?
            """,
                (
                    team.name,
                    team.description,
                    team.review_frequency,
                    team.updated_at.isoformat(),
                    team.id,
                ),
            )
        return team

    def delete(self, team_id: TeamId) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))

    def list(self, page: int, limit: int, name: str | None = None) -> Page[Team]:
        query = "SELECT * FROM teams WHERE 1=1"
        params: builtins.list[Any] = []
        if name:
            query += " AND LOWER(name) LIKE ? ESCAPE '\\'"
            params.append(_like(name))

        with self._conn() as conn:
            row_count = conn.execute(f"SELECT COUNT(*) AS cnt FROM ({query})", params).fetchone()
            rows = conn.execute(
                query + " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                [*params, limit, _offset(page, limit)],
            ).fetchall()
        return Page([_row_to_team(r) for r in rows], row_count["cnt"])

    def list_by_user(self, user_id: UserId) -> builtins.list[Team]:
        with self._conn() as conn:
            rows = conn.execute(
                """
                SELECT t.* FROM teams t
                JOIN team_members m ON m.team_id = t.id
                WHERE m.user_id = ?
                ORDER BY t.created_at ASC, t.rowid ASC
            """,
                (user_id,),
            ).fetchall()
        return [_row_to_team(r) for r in rows]


# --- Team members ---


def _row_to_member(row: dict[str, Any]) -> TeamMember:
    return TeamMember(
        team_id=TeamId(row["team_id"]),
        user_id=UserId(row["user_id"]),
        role=row["role"],
        joined_at=_dt(row["joined_at"]),
    )


class SQLiteTeamMemberRepo(_SQLiteRepo):
    def add(self, member: TeamMember) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                """
                INSERT INTO team_members (team_id, user_id, role, joined_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(team_id, user_id) DO NOTHING
            """,
                (member.team_id, member.user_id, member.role, member.joined_at.isoformat()),
            )
            return cur.rowcount > 0

    def get_by_team_and_user(self, team_id: TeamId, user_id: UserId) -> TeamMember | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? AND user_id = ?",
                (team_id, user_id),
            ).fetchone()
        return _row_to_member(row) if row else None

    def update_role(self, team_id: TeamId, user_id: UserId, role: TeamRole) -> TeamMember | None:
        with self._conn() as conn:
            conn.execute(
                "UPDATE team_members SET role = ? WHERE team_id = ? AND user_id = ?",
                (role, team_id, user_id),
            )
            row = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? AND user_id = ?",
                (team_id, user_id),
            ).fetchone()
        return _row_to_member(row) if row else None

    def delete(self, team_id: TeamId, user_id: UserId) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                "DELETE FROM team_members WHERE team_id = ? AND user_id = ?", (team_id, user_id)
            )
            return cur.rowcount > 0

    def list(
        self,
        team_id: TeamId,
        page: int,
        limit: int,
        role: TeamRole | None = None,
    ) -> Page[TeamMemberWithUser]:
        query = """
            SELECT m.*, u.display_name, u.email FROM team_members m
            JOIN users u ON u.id = m.user_id
            WHERE m.team_id = ?
        """
        params: builtins.list[Any] = [team_id]
        if role:
            query += " AND m.role = ?"
            params.append(role)

        with self._conn() as conn:
            row_count = conn.execute(f"SELECT COUNT(*) AS cnt FROM ({query})", params).fetchone()
            rows = conn.execute(
                query + " ORDER BY m.joined_at ASC, m.rowid ASC LIMIT ? OFFSET ?",
                [*params, limit, _offset(page, limit)],
            ).fetchall()

        items = [
            TeamMemberWithUser(
                **_row_to_member(r).model_dump(),
                display_name=r["display_name"],
                email=r["email"],
            )
            for r in rows
        ]
        return Page(items, row_count["cnt"])

    def list_by_user(self, user_id: UserId) -> builtins.list[TeamMember]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM team_members WHERE user_id = ? ORDER BY joined_at ASC, rowid ASC",
                (user_id,),
            ).fetchall()
        return [_row_to_member(r) for r in rows]

    def count_by_team(self, team_id: TeamId, role: TeamRole | None = None) -> int:
        query = "SELECT COUNT(*) AS cnt FROM team_members WHERE team_id = ?"
        params: builtins.list[Any] = [team_id]
        if role:
            query += " AND role = ?"
            params.append(role)
        with self._conn() as conn:
            row = conn.execute(query, params).fetchone()
        return int(row["cnt"])


# --- Invitations ---

_INVITATION_WITH_TEAM = """
    SELECT i.*, t.name AS team_name, t.description AS team_description,
           u.display_name AS invited_by_name, u.email AS invited_by_email
    FROM invitations i
    JOIN teams t ON t.id = i.team_id
    JOIN users u ON u.id = i.invited_by_id
"""


def _row_to_invitation(row: dict[str, Any]) -> Invitation:
    return Invitation(
        id=InvitationId(row["id"]),
        team_id=TeamId(row["team_id"]),
        invited_email=row["invited_email"],
        invited_by_id=UserId(row["invited_by_id"]),
        role=row["role"],
        status=row["status"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


def _row_to_invitation_with_team(row: dict[str, Any]) -> InvitationWithTeam:
    return InvitationWithTeam(
        **_row_to_invitation(row).model_dump(),
        team_name=row["team_name"],
        team_description=row["team_description"],
        invited_by_name=row["invited_by_name"],
        invited_by_email=row["invited_by_email"],
    )


class SQLiteInvitationRepo(_SQLiteRepo):
    def create_pending(self, invitation: Invitation) -> Invitation | None:
        pending = invitation.model_copy(
            update={"status": "pending", "invited_email": invitation.invited_email.lower()}
        )
        with self._conn() as conn:
            # The partial unique index on pending rows is the duplicate guard.
            cur = conn.execute(
                """
                INSERT INTO invitations (
                    id, team_id, invited_email, invited_by_id, role, status,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
            """,
                (
                    pending.id,
                    pending.team_id,
                    pending.invited_email,
                    pending.invited_by_id,
                    pending.role,
                    pending.status,
                    pending.created_at.isoformat(),
                    pending.updated_at.isoformat(),
                ),
            )
            created = cur.rowcount > 0
        return pending if created else None

    def get_by_id(self, invitation_id: InvitationId) -> InvitationWithTeam | None:
        with self._conn() as conn:
            row = conn.execute(
                _INVITATION_WITH_TEAM + " WHERE i.id = ?", (invitation_id,)
            ).fetchone()
        return _row_to_invitation_with_team(row) if row else None

    def get_pending(self, team_id: TeamId, email: str) -> Invitation | None:
        with self._conn() as conn:
            row = conn.execute(
                """
                SELECT * FROM invitations
                WHERE team_id = ? AND invited_email = ? AND status = 'pending'
            """,
                (team_id, email.lower()),
            ).fetchone()
        return _row_to_invitation(row) if row else None

    def accept(
        self, invitation_id: InvitationId, member: TeamMember, now: datetime
    ) -> Invitation | None:
        with self._conn() as conn:
            cur = conn.execute(
                """
                UPDATE invitations SET status = 'accepted', updated_at = ?
                WHERE id = ? AND status = 'pending'
            """,
                (now.isoformat(), invitation_id),
            )
            if cur.rowcount == 0:
                return None
            conn.execute(
                """
                INSERT INTO team_members (team_id, user_id, role, joined_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(team_id, user_id) DO NOTHING
            """,
                (member.team_id, member.user_id, member.role, member.joined_at.isoformat()),
            )
            row = conn.execute("SELECT * FROM invitations WHERE id = ?", (invitation_id,)).fetchone()
        return _row_to_invitation(row)

    def reject(self, invitation_id: InvitationId, now: datetime) -> Invitation | None:
        with self._conn() as conn:
            cur = conn.execute(
                """
                UPDATE invitations SET status = 'rejected', updated_at = ?
                WHERE id = ? AND status = 'pending'
            """,
                (now.isoformat(), invitation_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM invitations WHERE id = ?", (invitation_id,)).fetchone()
        return _row_to_invitation(row)

    def delete(self, invitation_id: InvitationId) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM invitations WHERE id = ?", (invitation_id,))

    def list(
        self,
        page: int,
        limit: int,
        team_id: TeamId | None = None,
        invited_email: str | None = None,
        status: InvitationStatus | None = None,
    ) -> Page[InvitationWithTeam]:
        query = _INVITATION_WITH_TEAM + " WHERE 1=1"
        params: builtins.list[Any] = []
        if team_id:
            query += " AND i.team_id = ?"
            params.append(team_id)
        if invited_email:
            query += " AND i.invited_email = ?"
            params.append(invited_email.lower())
        if status:
            query += " AND i.status = ?"
            params.append(status)

        with self._conn() as conn:
            row_count = conn.execute(f"SELECT COUNT(*) AS cnt FROM ({query})", params).fetchone()
            rows = conn.execute(
                query + " ORDER BY i.created_at DESC, i.rowid DESC LIMIT ? OFFSET ?",
                [*params, limit, _offset(page, limit)],
            ).fetchall()
        return Page([_row_to_invitation_with_team(r) for r in rows], row_count["cnt"])


# --- OKRs ---


def _row_to_okr(row: dict[str, Any]) -> Okr:
    return Okr(
        id=OkrId(row["id"]),
        title=row["title"],
        description=row["description"],
        type=row["type"],
        team_id=TeamId(row["team_id"]),
        owner_id=UserId(row["owner_id"]),
        quarter_year=row["quarter_year"],
        quarter_quarter=row["quarter_quarter"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


def _okr_where(okr_filter: OkrFilter | None) -> tuple[str, builtins.list[Any]]:
    clauses = ["1=1"]
    params: builtins.list[Any] = []
    if okr_filter is None:
        return clauses[0], params

    if okr_filter.team_ids is not None:
        clauses.append(f"team_id IN ({_placeholders(len(okr_filter.team_ids))})")
        params += list(okr_filter.team_ids)
    if okr_filter.owner_id:
        clauses.append("owner_id = ?")
        params.append(okr_filter.owner_id)
    if okr_filter.type:
        clauses.append("type = ?")
        params.append(okr_filter.type)
    if okr_filter.year is not None:
        clauses.append("quarter_year = ?")
        params.append(okr_filter.year)
    if okr_filter.quarter is not None:
        clauses.append("quarter_quarter = ?")
        params.append(okr_filter.quarter)
    if okr_filter.viewer_id:
        admin_ids = list(okr_filter.admin_team_ids)
        visible = "type != 'personal' OR owner_id = ?"
        params.append(okr_filter.viewer_id)
        if admin_ids:
            visible += f" OR team_id IN ({_placeholders(len(admin_ids))})"
            params += admin_ids
        clauses.append(f"({visible})")
    return " AND ".join(clauses), params


class SQLiteOkrRepo(_SQLiteRepo):
    def create(self, okr: Okr) -> Okr:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO okrs (
                    id, title, description, type, team_id, owner_id,
                    quarter_year, quarter_quarter, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    okr.id,
                    okr.title,
                    okr.description,
                    okr.type,
                    okr.team_id,
                    okr.owner_id,
                    okr.quarter_year,
                    okr.quarter_quarter,
                    okr.created_at.isoformat(),
                    okr.updated_at.isoformat(),
                ),
            )
        return okr

    def get_by_id(self, okr_id: OkrId) -> Okr | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM okrs WHERE id = ?", (okr_id,)).fetchone()
        return _row_to_okr(row) if row else None

    def update(self, okr: Okr) -> Okr:
        with self._conn() as conn:
            conn.execute(
                """
                UPDATE okrs SET title = ?, description = ?, type = ?, owner_id = ?,
                    quarter_year = ?, quarter_quarter = ?, updated_at = ?
                WHERE id = ?
            """,
                (
                    okr.title,
                    okr.description,
                    okr.type,
                    okr.owner_id,
                    okr.quarter_year,
                    okr.quarter_quarter,
                    okr.updated_at.isoformat(),
                    okr.id,
                ),
            )
        return okr

    def delete(self, okr_id: OkrId) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM okrs WHERE id = ?", (okr_id,))

    def _page(
        self, where: str, params: builtins.list[Any], page: int, limit: int
    ) -> Page[Okr]:
        query = f"SELECT * FROM okrs WHERE {where}"
        with self._conn() as conn:
            row_count = conn.execute(f"SELECT COUNT(*) AS cnt FROM ({query})", params).fetchone()
            rows = conn.execute(
                query + " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                [*params, limit, _offset(page, limit)],
            ).fetchall()
        return Page([_row_to_okr(r) for r in rows], row_count["cnt"])

    def list(self, page: int, limit: int, okr_filter: OkrFilter | None = None) -> Page[Okr]:
        where, params = _okr_where(okr_filter)
        return self._page(where, params, page, limit)

    def _list_where(
        self, column: str, value: str, quarter: Quarter | None
    ) -> builtins.list[Okr]:
        query = f"SELECT * FROM okrs WHERE {column} = ?"
        params: builtins.list[Any] = [value]
        if quarter:
            query += " AND quarter_year = ? AND quarter_quarter = ?"
            params += [quarter.year, quarter.quarter]
        with self._conn() as conn:
            rows = conn.execute(query + " ORDER BY created_at DESC, rowid DESC", params).fetchall()
        return [_row_to_okr(r) for r in rows]

    def list_by_team(self, team_id: TeamId, quarter: Quarter | None = None) -> builtins.list[Okr]:
        return self._list_where("team_id", team_id, quarter)

    def list_by_user(self, user_id: UserId, quarter: Quarter | None = None) -> builtins.list[Okr]:
        return self._list_where("owner_id", user_id, quarter)

    def count_by_team(self, team_id: TeamId) -> int:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS cnt FROM okrs WHERE team_id = ?", (team_id,)
            ).fetchone()
        return int(row["cnt"])

    def search(
        self,
        query: str,
        okr_filter: OkrFilter,
        page: int,
        limit: int,
    ) -> Page[Okr]:
        where, params = _okr_where(okr_filter)
        if query:
            where += (
                " AND (LOWER(title) LIKE ? ESCAPE '\\'"
                " OR LOWER(COALESCE(description, '')) LIKE ? ESCAPE '\\')"
            )
            params += [_like(query), _like(query)]
        return self._page(where, params, page, limit)


# --- Key results ---


def _row_to_key_result(row: dict[str, Any]) -> KeyResult:
    return KeyResult(
        id=KeyResultId(row["id"]),
        okr_id=OkrId(row["okr_id"]),
        title=row["title"],
        target_value=row["target_value"],
        current_value=row["current_value"],
        unit=row["unit"],
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


class SQLiteKeyResultRepo(_SQLiteRepo):
    def create(self, key_result: KeyResult) -> KeyResult:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO key_results (
                    id, okr_id, title, target_value, current_value, unit, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    key_result.id,
                    key_result.okr_id,
                    key_result.title,
                    key_result.target_value,
                    key_result.current_value,
                    key_result.unit,
                    key_result.created_at.isoformat(),
                    key_result.updated_at.isoformat(),
                ),
            )
        return key_result

    def get_by_id(self, key_result_id: KeyResultId) -> KeyResult | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM key_results WHERE id = ?", (key_result_id,)
            ).fetchone()
        return _row_to_key_result(row) if row else None

    def update(self, key_result: KeyResult) -> KeyResult:
        with self._conn() as conn:
            conn.execute(
                """
                UPDATE key_results SET title = ?, target_value = ?, current_value = ?,
                    unit = ?, updated_at = ?
                WHERE id = ?
            """,
                (
                    key_result.title,
                    key_result.target_value,
                    key_result.current_value,
                    key_result.unit,
                    key_result.updated_at.isoformat(),
                    key_result.id,
                ),
            )
        return key_result

    def delete(self, key_result_id: KeyResultId) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM key_results WHERE id = ?", (key_result_id,))

    def list_by_okr(self, okr_id: OkrId) -> builtins.list[KeyResult]:
        return self.list_by_okrs([okr_id])

    def list_by_okrs(self, okr_ids: Sequence[OkrId]) -> builtins.list[KeyResult]:
        if not okr_ids:
            return []
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM key_results WHERE okr_id IN ({_placeholders(len(okr_ids))})
                ORDER BY created_at ASC, rowid ASC
            """,
                list(okr_ids),
            ).fetchall()
        return [_row_to_key_result(r) for r in rows]


# --- Reviews ---


def _row_to_review(row: dict[str, Any]) -> Review:
    return Review(
        id=ReviewId(row["id"]),
        okr_id=OkrId(row["okr_id"]),
        type=row["type"],
        content=row["content"],
        reviewer_id=UserId(row["reviewer_id"]),
        created_at=_dt(row["created_at"]),
        updated_at=_dt(row["updated_at"]),
    )


class SQLiteReviewRepo(_SQLiteRepo):
    def create(self, review: Review) -> Review:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO reviews (id, okr_id, type, content, reviewer_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    review.id,
                    review.okr_id,
                    review.type,
                    review.content,
                    review.reviewer_id,
                    review.created_at.isoformat(),
                    review.updated_at.isoformat(),
                ),
            )
        return review

    def get_by_id(self, review_id: ReviewId) -> Review | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM reviews WHERE id = ?", (review_id,)).fetchone()
        return _row_to_review(row) if row else None

    def update(self, review: Review) -> Review:
        with self._conn() as conn:
            conn.execute(
                "UPDATE reviews SET type = ?, content = ?, updated_at = ? WHERE id = ?",
                (review.type, review.content, review.updated_at.isoformat(), review.id),
            )
        return review

    def delete(self, review_id: ReviewId) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))

    def list(
        self,
        page: int,
        limit: int,
        okr_id: OkrId | None = None,
        review_type: ReviewType | None = None,
        reviewer_id: UserId | None = None,
    ) -> Page[Review]:
        query = "SELECT * FROM reviews WHERE 1=1"
        params: builtins.list[Any] = []
        if okr_id:
            query += " AND okr_id = ?"
            params.append(okr_id)
        if review_type:
            query += " AND type = ?"
            params.append(review_type)
        if reviewer_id:
            query += " AND reviewer_id = ?"
            params.append(reviewer_id)

        with self._conn() as conn:
            row_count = conn.execute(f"SELECT COUNT(*) AS cnt FROM ({query})", params).fetchone()
            rows = conn.execute(
                query + " ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?",
                [*params, limit, _offset(page, limit)],
            ).fetchall()
        return Page([_row_to_review(r) for r in rows], row_count["cnt"])


# --- Notifications ---


def _row_to_notification(row: dict[str, Any]) -> Notification:
    return Notification(
        id=NotificationId(row["id"]),
        user_id=UserId(row["user_id"]),
        type=row["type"],
        title=row["title"],
        message=row["message"],
        is_read=bool(row["is_read"]),
        created_at=_dt(row["created_at"]),
        metadata=json.loads(row["metadata_json"] or "{}"),
    )


class SQLiteNotificationRepo(_SQLiteRepo):
    def save(self, notification: Notification) -> Notification:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO notifications (
                    id, user_id, type, title, message, is_read, created_at, metadata_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    message=excluded.message,
                    is_read=excluded.is_read,
                    metadata_json=excluded.metadata_json
            """,
                (
                    notification.id,
                    notification.user_id,
                    notification.type,
                    notification.title,
                    notification.message,
                    int(notification.is_read),
                    notification.created_at.isoformat(),
                    json.dumps(notification.metadata),
                ),
            )
        return notification

    def get_by_id(self, notification_id: NotificationId) -> Notification | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM notifications WHERE id = ?", (notification_id,)
            ).fetchone()
        return _row_to_notification(row) if row else None

    def list_by_user(
        self,
        user_id: UserId,
        page: int,
        limit: int,
        unread_only: bool = False,
    ) -> NotificationPage:
        query = "SELECT * FROM notifications WHERE user_id = ?"
        if unread_only:
            query += " AND is_read = 0"

        with self._conn() as conn:
            total = conn.execute(f"SELECT COUNT(*) AS cnt FROM ({query})", (user_id,)).fetchone()
            unread = conn.execute(
                "SELECT COUNT(*) AS cnt FROM notifications WHERE user_id = ? AND is_read = 0",
                (user_id,),
            ).fetchone()
            rows = conn.execute(
                query + " ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                (user_id, limit, _offset(page, limit)),
            ).fetchall()
        return NotificationPage(
            items=[_row_to_notification(r) for r in rows],
            total=total["cnt"],
            unread_count=unread["cnt"],
        )

    def mark_as_read(self, notification_id: NotificationId) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                "UPDATE notifications SET is_read = 1 WHERE id = ?", (notification_id,)
            )
            return cur.rowcount > 0

    def mark_all_as_read(self, user_id: UserId) -> int:
        with self._conn() as conn:
            cur = conn.execute(
                "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0",
                (user_id,),
            )
            return cur.rowcount

    def get_settings(self, user_id: UserId) -> NotificationSettings | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM notification_settings WHERE user_id = ?", (user_id,)
            ).fetchone()
        if not row:
            return None
        return NotificationSettings(
            user_id=UserId(row["user_id"]),
            invitations=bool(row["invitations"]),
            review_reminders=bool(row["review_reminders"]),
            progress_updates=bool(row["progress_updates"]),
            team_updates=bool(row["team_updates"]),
        )

    def save_settings(self, settings: NotificationSettings) -> NotificationSettings:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO notification_settings (
                    user_id, invitations, review_reminders, progress_updates, team_updates
                ) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    invitations=excluded.invitations,
                    review_reminders=excluded.review_reminders,
                    progress_updates=excluded.progress_updates,
                    team_updates=excluded.team_updates
            """,
                (
                    settings.user_id,
                    int(settings.invitations),
                    int(settings.review_reminders),
                    int(settings.progress_updates),
                    int(settings.team_updates),
                ),
            )
        return settings
