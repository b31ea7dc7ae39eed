"""
Dashboard component - the signed-in user's overview.

Current-quarter OKRs are the team OKRs of every team the user belongs to
plus the user's own personal OKRs. Overdue is counted over the user's own
OKRs across all quarters so that old unfinished work stays visible.
"""

import logging
from fractions import Fraction
from math import floor

from src.domain.errors import AppError
from src.domain.progress import current_quarter
from src.ports.repo import Quarter

from .._common import repository_guard
from ..context import UseCaseContext
from ..okrs._impl import assemble_many
from ..okrs.component import can_view
from ..teams.models import TeamSummary
from .models import DashboardData, DashboardOutput, OkrStats

logger = logging.getLogger(__name__)


@repository_guard(DashboardOutput, "Failed to load dashboard")
def run_get_dashboard(ctx: UseCaseContext) -> DashboardOutput:
    actor = ctx.identity.current()
    if not actor:
        return DashboardOutput(error=AppError.unauthenticated())

    roles = {m.team_id: m.role for m in ctx.members.list_by_user(actor.user_id)}
    teams = [
        TeamSummary(team=team, role=roles[team.id], member_count=ctx.members.count_by_team(team.id))
        for team in ctx.teams.list_by_user(actor.user_id)
        if team.id in roles
    ]

    year, quarter = current_quarter(ctx.clock.today())
    this_quarter = Quarter(year, quarter)

    okrs = []
    for summary in teams:
        okrs += [
            o
            for o in ctx.okrs.list_by_team(summary.team.id, this_quarter)
            if o.type == "team" or o.owner_id == actor.user_id
        ]
    current = assemble_many(ctx, okrs)

    average = 0
    if current:
        mean = Fraction(sum(o.progress for o in current), len(current))
        average = floor(mean + Fraction(1, 2))

    owned = [
        o
        for o in ctx.okrs.list_by_user(actor.user_id)
        if can_view(ctx, o, roles.get(o.team_id), actor)
    ]
    stats = OkrStats(
        year=year,
        quarter=quarter,
        personal_okrs=sum(1 for o in current if o.type == "personal"),
        team_okrs=sum(1 for o in current if o.type == "team"),
        average_progress=average,
        completed=sum(1 for o in current if o.status == "completed"),
        due_soon=sum(1 for o in current if o.status == "due_soon"),
        overdue=sum(1 for o in assemble_many(ctx, owned) if o.status == "overdue"),
    )

    unread = ctx.notifications.list_by_user(actor.user_id, 1, 1, unread_only=True).unread_count

    logger.debug(
        "Dashboard for %s: %d teams, %d current OKRs", actor.user_id, len(teams), len(current)
    )
    return DashboardOutput(
        data=DashboardData(
            teams=teams,
            stats=stats,
            current_okrs=current,
            unread_notifications=unread,
        ),
        success=True,
    )
