"""
Teams component - team lifecycle and membership management.

Key behaviors:
- Creating a team makes the creator its first admin
- Every team keeps at least one admin: demoting or removing the last admin
  is a conflict
- A team can only be deleted once the deleting admin is its only member
"""

import logging

from src.domain.entities import Team, TeamId, TeamMember, TeamRole
from src.domain.errors import AppError, ValidationIssue
from src.domain.validation import check_choice, check_id, check_pagination, check_text
from src.ports.repo import RepositoryError

from .._common import denied, member_role, repository_guard
from ..context import UseCaseContext
from .models import (
    CreateTeamInput,
    DeleteTeamInput,
    GetTeamInput,
    ListMembersInput,
    MemberListOutput,
    MemberOutput,
    RemoveMemberInput,
    TeamListOutput,
    TeamOutput,
    TeamSummary,
    UpdateMemberRoleInput,
    UpdateTeamInput,
)

logger = logging.getLogger(__name__)

ROLES: tuple[TeamRole, ...] = ("admin", "member", "viewer")


def _validate_team_fields(
    ctx: UseCaseContext,
    name: str | None,
    description: str | None,
    review_frequency: str | None,
    *,
    name_required: bool,
) -> list[ValidationIssue]:
    rules = ctx.rules.teams
    issues: list[ValidationIssue] = []
    if name_required or name is not None:
        issues += check_text(name, "name", rules.name)
    issues += check_text(description, "description", rules.description, required=False)
    if review_frequency is not None:
        issues += check_choice(review_frequency, "review_frequency", rules.review_frequencies)
    return issues


def _load_team(ctx: UseCaseContext, team_id: TeamId) -> Team | AppError:
    team = ctx.teams.get_by_id(team_id)
    if not team:
        return AppError.not_found("team")
    return team


@repository_guard(TeamOutput, "Failed to create team")
def run_create_team(inp: CreateTeamInput, ctx: UseCaseContext) -> TeamOutput:
    actor = ctx.identity.current()
    if not actor:
        return TeamOutput(error=AppError.unauthenticated())

    issues = _validate_team_fields(
        ctx, inp.name, inp.description, inp.review_frequency, name_required=True
    )
    if issues:
        return TeamOutput(error=AppError.validation(issues))

    now = ctx.clock.now_utc()
    team = Team(
        name=inp.name.strip(),
        description=inp.description or None,
        review_frequency=inp.review_frequency or ctx.rules.teams.default_review_frequency,
        created_at=now,
        updated_at=now,
    )
    ctx.teams.create(team)

    try:
        ctx.members.add(
            TeamMember(team_id=team.id, user_id=actor.user_id, role="admin", joined_at=now)
        )
    except RepositoryError:
        # A team without an admin must not survive.
        ctx.teams.delete(team.id)
        raise

    logger.info("Team %s created by %s", team.id, actor.user_id)
    return TeamOutput(team=team, role="admin", member_count=1, success=True)


@repository_guard(TeamOutput, "Failed to update team")
def run_update_team(inp: UpdateTeamInput, ctx: UseCaseContext) -> TeamOutput:
    actor = ctx.identity.current()
    if not actor:
        return TeamOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    issues += _validate_team_fields(
        ctx, inp.name, inp.description, inp.review_frequency, name_required=False
    )
    if issues:
        return TeamOutput(error=AppError.validation(issues))

    team = _load_team(ctx, inp.team_id)
    if isinstance(team, AppError):
        return TeamOutput(error=team)

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "edit_team_settings"):
        return TeamOutput(error=denied("edit_team_settings", f"team:{team.id}", actor.user_id))

    updates: dict[str, object] = {"updated_at": ctx.clock.now_utc()}
    if inp.name is not None:
        updates["name"] = inp.name.strip()
    if inp.description is not None:
        updates["description"] = inp.description or None
    if inp.review_frequency is not None:
        updates["review_frequency"] = inp.review_frequency

    updated = ctx.teams.update(team.model_copy(update=updates))
    return TeamOutput(
        team=updated,
        role=role,
        member_count=ctx.members.count_by_team(team.id),
        success=True,
    )


@repository_guard(TeamOutput, "Failed to load team")
def run_get_team(inp: GetTeamInput, ctx: UseCaseContext) -> TeamOutput:
    actor = ctx.identity.current()
    if not actor:
        return TeamOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    if issues:
        return TeamOutput(error=AppError.validation(issues))

    team = _load_team(ctx, inp.team_id)
    if isinstance(team, AppError):
        return TeamOutput(error=team)

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "view"):
        return TeamOutput(error=denied("view", f"team:{team.id}", actor.user_id))

    return TeamOutput(
        team=team,
        role=role,
        member_count=ctx.members.count_by_team(team.id),
        success=True,
    )


@repository_guard(TeamListOutput, "Failed to list teams")
def run_list_user_teams(ctx: UseCaseContext) -> TeamListOutput:
    actor = ctx.identity.current()
    if not actor:
        return TeamListOutput(error=AppError.unauthenticated())

    roles = {m.team_id: m.role for m in ctx.members.list_by_user(actor.user_id)}
    summaries = [
        TeamSummary(team=team, role=roles[team.id], member_count=ctx.members.count_by_team(team.id))
        for team in ctx.teams.list_by_user(actor.user_id)
        if team.id in roles
    ]
    return TeamListOutput(teams=summaries, success=True)


@repository_guard(TeamOutput, "Failed to delete team")
def run_delete_team(inp: DeleteTeamInput, ctx: UseCaseContext) -> TeamOutput:
    actor = ctx.identity.current()
    if not actor:
        return TeamOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    if issues:
        return TeamOutput(error=AppError.validation(issues))

    team = _load_team(ctx, inp.team_id)
    if isinstance(team, AppError):
        return TeamOutput(error=team)

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "delete_team"):
        return TeamOutput(error=denied("delete_team", f"team:{team.id}", actor.user_id))

    member_count = ctx.members.count_by_team(team.id)
    if member_count > 1:
        return TeamOutput(
            member_count=member_count,
            error=AppError.conflict(
                f"Remove the other {member_count - 1} member(s) before deleting this team",
                resource=f"team:{team.id}",
            ),
        )

    ctx.teams.delete(team.id)
    logger.info("Team %s deleted by %s", team.id, actor.user_id)
    return TeamOutput(team=team, success=True)


@repository_guard(MemberListOutput, "Failed to list team members")
def run_list_members(inp: ListMembersInput, ctx: UseCaseContext) -> MemberListOutput:
    actor = ctx.identity.current()
    if not actor:
        return MemberListOutput(error=AppError.unauthenticated())

    limit = inp.limit or ctx.rules.pagination.default_limit
    issues = check_id(inp.team_id, "team_id")
    issues += check_pagination(inp.page, limit, ctx.rules.pagination)
    if inp.role is not None:
        issues += check_choice(inp.role, "role", ROLES)
    if issues:
        return MemberListOutput(error=AppError.validation(issues))

    team = _load_team(ctx, inp.team_id)
    if isinstance(team, AppError):
        return MemberListOutput(error=team)

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "view"):
        return MemberListOutput(error=denied("view", f"team:{team.id}", actor.user_id))

    page = ctx.members.list(team.id, inp.page, limit, role=inp.role)  # type: ignore[arg-type]
    return MemberListOutput(members=page.items, total=page.total, success=True)


def _last_admin_conflict(team_id: TeamId) -> AppError:
    return AppError.conflict(
        "A team must keep at least one admin; promote another member first",
        resource=f"team:{team_id}",
    )


@repository_guard(MemberOutput, "Failed to update member role")
def run_update_member_role(inp: UpdateMemberRoleInput, ctx: UseCaseContext) -> MemberOutput:
    actor = ctx.identity.current()
    if not actor:
        return MemberOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    issues += check_id(inp.target_user_id, "target_user_id")
    issues += check_choice(inp.role, "role", ROLES)
    if issues:
        return MemberOutput(error=AppError.validation(issues))

    team = _load_team(ctx, inp.team_id)
    if isinstance(team, AppError):
        return MemberOutput(error=team)

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "change_role"):
        return MemberOutput(error=denied("change_role", f"team:{team.id}", actor.user_id))

    target = ctx.members.get_by_team_and_user(team.id, inp.target_user_id)
    if not target:
        return MemberOutput(error=AppError.not_found("team member"))

    if target.role == inp.role:
        return MemberOutput(member=target, success=True)

    if target.role == "admin" and ctx.members.count_by_team(team.id, role="admin") <= 1:
        return MemberOutput(error=_last_admin_conflict(team.id))

    updated = ctx.members.update_role(team.id, target.user_id, inp.role)  # type: ignore[arg-type]
    if not updated:
        return MemberOutput(error=AppError.not_found("team member"))

    logger.info(
        "Member %s of team %s changed from %s to %s by %s",
        target.user_id, team.id, target.role, inp.role, actor.user_id,
    )
    return MemberOutput(member=updated, success=True)


@repository_guard(MemberOutput, "Failed to remove team member")
def run_remove_member(inp: RemoveMemberInput, ctx: UseCaseContext) -> MemberOutput:
    actor = ctx.identity.current()
    if not actor:
        return MemberOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    issues += check_id(inp.target_user_id, "target_user_id")
    if issues:
        return MemberOutput(error=AppError.validation(issues))

    team = _load_team(ctx, inp.team_id)
    if isinstance(team, AppError):
        return MemberOutput(error=team)

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "remove_member"):
        return MemberOutput(error=denied("remove_member", f"team:{team.id}", actor.user_id))

    target = ctx.members.get_by_team_and_user(team.id, inp.target_user_id)
    if not target:
        return MemberOutput(error=AppError.not_found("team member"))

    if target.user_id == actor.user_id:
        return MemberOutput(
            error=AppError.conflict(
                "You cannot remove yourself; delete the team or hand over admin first",
                resource=f"team:{team.id}",
            )
        )

    if target.role == "admin" and ctx.members.count_by_team(team.id, role="admin") <= 1:
        return MemberOutput(error=_last_admin_conflict(team.id))

    ctx.members.delete(team.id, target.user_id)
    logger.info("Member %s removed from team %s by %s", target.user_id, team.id, actor.user_id)
    return MemberOutput(member=target, success=True)
