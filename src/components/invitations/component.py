"""
Invitations component - team invitation workflow.

State machine (src.domain.state):
    pending -> accepted  (terminal, creates the TeamMember row)
    pending -> rejected  (terminal, no side effect)

Key behaviors:
- Only team admins invite; at most one pending invitation per (team, email)
- Only the invited identity (email match) may accept or reject
- Accepting flips the status and creates the membership in one repository
  call; an existing membership is an idempotent success
- Accepting an already-accepted invitation whose membership exists is also
  an idempotent success
"""

import logging

from src.domain.entities import Invitation, InvitationStatus, Notification, TeamMember, TeamRole
from src.domain.errors import AppError
from src.domain.state import can_transition
from src.domain.validation import (
    check_choice,
    check_email,
    check_id,
    check_pagination,
    normalize_email,
)
from src.ports.identity import Identity
from src.ports.repo import RepositoryError

from .._common import denied, member_role, repository_guard
from ..context import UseCaseContext
from .models import (
    AcceptInvitationInput,
    AcceptOutput,
    GetInvitationInput,
    InvitationListOutput,
    InvitationOutput,
    InviteToTeamInput,
    ListInvitationsInput,
    RejectInvitationInput,
)

logger = logging.getLogger(__name__)

ROLES: tuple[TeamRole, ...] = ("admin", "member", "viewer")
STATUSES: tuple[InvitationStatus, ...] = ("pending", "accepted", "rejected")


def _is_invitee(actor: Identity, invitation: Invitation) -> bool:
    return normalize_email(actor.email) == invitation.invited_email


def _wrong_invitee(invitation: Invitation) -> AppError:
    return AppError.forbidden(
        "This invitation was sent to a different email address",
        resource=f"invitation:{invitation.id}",
    )


def _not_pending(invitation: Invitation) -> AppError:
    return AppError.conflict(
        f"Invitation has already been {invitation.status}",
        resource=f"invitation:{invitation.id}",
    )


def _notify_invitee(ctx: UseCaseContext, invitation: Invitation, team_name: str) -> None:
    # Best effort: the invitation is already committed at this point.
    try:
        user = ctx.users.get_by_email(invitation.invited_email)
        if not user:
            return
        settings = ctx.notifications.get_settings(user.id)
        if settings and not settings.invitations:
            return
        ctx.notifications.save(
            Notification(
                user_id=user.id,
                type="invitation",
                title="Team invitation",
                message=f"You have been invited to join {team_name} as {invitation.role}",
                created_at=invitation.created_at,
                metadata={"invitation_id": invitation.id, "team_id": invitation.team_id},
            )
        )
    except RepositoryError:
        logger.exception("Could not record invitation notice for %s", invitation.id)


@repository_guard(InvitationOutput, "Failed to create invitation")
def run_invite_to_team(inp: InviteToTeamInput, ctx: UseCaseContext) -> InvitationOutput:
    actor = ctx.identity.current()
    if not actor:
        return InvitationOutput(error=AppError.unauthenticated())

    issues = check_id(inp.team_id, "team_id")
    issues += check_email(inp.email, "email")
    issues += check_choice(inp.role, "role", ROLES)
    if issues:
        return InvitationOutput(error=AppError.validation(issues))

    team = ctx.teams.get_by_id(inp.team_id)
    if not team:
        return InvitationOutput(error=AppError.not_found("team"))

    role = member_role(ctx, team.id, actor.user_id)
    if not ctx.policy.can_perform(role, "invite_member"):
        return InvitationOutput(error=denied("invite_member", f"team:{team.id}", actor.user_id))

    email = normalize_email(inp.email)
    existing_user = ctx.users.get_by_email(email)
    if existing_user and ctx.members.get_by_team_and_user(team.id, existing_user.id):
        return InvitationOutput(
            error=AppError.conflict(
                f"{email} is already a member of this team", resource=f"team:{team.id}"
            )
        )

    now = ctx.clock.now_utc()
    invitation = Invitation(
        team_id=team.id,
        invited_email=email,
        invited_by_id=actor.user_id,
        role=inp.role,  # type: ignore[arg-type]
        status="pending",
        created_at=now,
        updated_at=now,
    )
    created = ctx.invitations.create_pending(invitation)
    if created is None:
        pending = ctx.invitations.get_pending(team.id, email)
        return InvitationOutput(
            error=AppError.conflict(
                f"{email} already has a pending invitation to this team",
                resource=f"invitation:{pending.id}" if pending else f"team:{team.id}",
            )
        )

    logger.info("Invitation %s sent to %s for team %s", created.id, email, team.id)
    _notify_invitee(ctx, created, team.name)
    return InvitationOutput(invitation=created, success=True)


def _idempotent_accept(
    ctx: UseCaseContext, invitation: Invitation, actor: Identity
) -> AcceptOutput | None:
    """Success output if the invitation is accepted and the membership exists."""
    if invitation.status != "accepted":
        return None
    member = ctx.members.get_by_team_and_user(invitation.team_id, actor.user_id)
    if not member:
        return None
    return AcceptOutput(invitation=invitation, member=member, already_member=True, success=True)


@repository_guard(AcceptOutput, "Failed to accept invitation")
def run_accept_invitation(inp: AcceptInvitationInput, ctx: UseCaseContext) -> AcceptOutput:
    actor = ctx.identity.current()
    if not actor:
        return AcceptOutput(error=AppError.unauthenticated())

    issues = check_id(inp.invitation_id, "invitation_id")
    if issues:
        return AcceptOutput(error=AppError.validation(issues))

    invitation = ctx.invitations.get_by_id(inp.invitation_id)
    if not invitation:
        return AcceptOutput(error=AppError.not_found("invitation"))

    if not _is_invitee(actor, invitation):
        return AcceptOutput(error=_wrong_invitee(invitation))

    if not can_transition(invitation.status, "accepted"):
        return _idempotent_accept(ctx, invitation, actor) or AcceptOutput(
            error=_not_pending(invitation)
        )

    now = ctx.clock.now_utc()
    existing = ctx.members.get_by_team_and_user(invitation.team_id, actor.user_id)
    accepted = ctx.invitations.accept(
        invitation.id,
        TeamMember(
            team_id=invitation.team_id,
            user_id=actor.user_id,
            role=invitation.role,
            joined_at=now,
        ),
        now,
    )
    if accepted is None:
        # Lost a race with another accept/reject of the same invitation.
        current = ctx.invitations.get_by_id(invitation.id)
        if current is None:
            return AcceptOutput(error=AppError.not_found("invitation"))
        return _idempotent_accept(ctx, current, actor) or AcceptOutput(
            error=_not_pending(current)
        )

    member = ctx.members.get_by_team_and_user(invitation.team_id, actor.user_id)
    logger.info(
        "Invitation %s accepted by %s (team %s)", invitation.id, actor.user_id, invitation.team_id
    )
    return AcceptOutput(
        invitation=accepted,
        member=member,
        already_member=existing is not None,
        success=True,
    )


@repository_guard(InvitationOutput, "Failed to reject invitation")
def run_reject_invitation(inp: RejectInvitationInput, ctx: UseCaseContext) -> InvitationOutput:
    actor = ctx.identity.current()
    if not actor:
        return InvitationOutput(error=AppError.unauthenticated())

    issues = check_id(inp.invitation_id, "invitation_id")
    if issues:
        return InvitationOutput(error=AppError.validation(issues))

    invitation = ctx.invitations.get_by_id(inp.invitation_id)
    if not invitation:
        return InvitationOutput(error=AppError.not_found("invitation"))

    if not _is_invitee(actor, invitation):
        return InvitationOutput(error=_wrong_invitee(invitation))

    if not can_transition(invitation.status, "rejected"):
        return InvitationOutput(error=_not_pending(invitation))

    rejected = ctx.invitations.reject(invitation.id, ctx.clock.now_utc())
    if rejected is None:
        current = ctx.invitations.get_by_id(invitation.id) or invitation
        return InvitationOutput(error=_not_pending(current))

    logger.info("Invitation %s rejected by %s", invitation.id, actor.user_id)
    return InvitationOutput(invitation=rejected, success=True)


@repository_guard(InvitationOutput, "Failed to load invitation")
def run_get_invitation(inp: GetInvitationInput, ctx: UseCaseContext) -> InvitationOutput:
    actor = ctx.identity.current()
    if not actor:
        return InvitationOutput(error=AppError.unauthenticated())

    issues = check_id(inp.invitation_id, "invitation_id")
    if issues:
        return InvitationOutput(error=AppError.validation(issues))

    invitation = ctx.invitations.get_by_id(inp.invitation_id)
    if not invitation:
        return InvitationOutput(error=AppError.not_found("invitation"))

    if not _is_invitee(actor, invitation):
        role = member_role(ctx, invitation.team_id, actor.user_id)
        if not ctx.policy.can_perform(role, "view"):
            return InvitationOutput(error=_wrong_invitee(invitation))

    return InvitationOutput(invitation=invitation, success=True)


@repository_guard(InvitationListOutput, "Failed to list invitations")
def run_list_invitations(inp: ListInvitationsInput, ctx: UseCaseContext) -> InvitationListOutput:
    """
    List invitations. Filtering by team requires permission to invite into
    that team; otherwise only invitations addressed to the caller are visible.
    """
    actor = ctx.identity.current()
    if not actor:
        return InvitationListOutput(error=AppError.unauthenticated())

    limit = inp.limit or ctx.rules.pagination.default_limit
    issues = check_pagination(inp.page, limit, ctx.rules.pagination)
    if inp.team_id is not None:
        issues += check_id(inp.team_id, "team_id")
    if inp.invited_email is not None:
        issues += check_email(inp.invited_email, "invited_email")
    if inp.status is not None:
        issues += check_choice(inp.status, "status", STATUSES)
    if issues:
        return InvitationListOutput(error=AppError.validation(issues))

    email = normalize_email(inp.invited_email) if inp.invited_email else None
    own_email = normalize_email(actor.email)

    if inp.team_id is not None:
        if not ctx.teams.get_by_id(inp.team_id):
            return InvitationListOutput(error=AppError.not_found("team"))
        role = member_role(ctx, inp.team_id, actor.user_id)
        if not ctx.policy.can_perform(role, "invite_member"):
            return InvitationListOutput(
                error=denied("invite_member", f"team:{inp.team_id}", actor.user_id)
            )
    elif email is None:
        email = own_email
    elif email != own_email:
        return InvitationListOutput(
            error=AppError.forbidden("You can only list invitations sent to you")
        )

    page = ctx.invitations.list(
        inp.page,
        limit,
        team_id=inp.team_id,
        invited_email=email,
        status=inp.status,  # type: ignore[arg-type]
    )
    return InvitationListOutput(invitations=page.items, total=page.total, success=True)


def run_list_my_invitations(ctx: UseCaseContext) -> InvitationListOutput:
    """Pending invitations addressed to the current identity."""
    return run_list_invitations(
        ListInvitationsInput(status="pending", limit=ctx.rules.pagination.max_limit), ctx
    )
