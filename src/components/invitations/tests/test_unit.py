"""
Invitations component unit tests.

Covers the pending -> accepted/rejected workflow, the one-pending-invitation
guard, idempotent acceptance and who may see which invitations.
"""

from __future__ import annotations

import dataclasses
import threading

from src.components.invitations import (
    AcceptInvitationInput,
    GetInvitationInput,
    InviteToTeamInput,
    ListInvitationsInput,
    RejectInvitationInput,
    run_accept_invitation,
    run_get_invitation,
    run_invite_to_team,
    run_list_invitations,
    run_list_my_invitations,
    run_reject_invitation,
)
from src.domain.entities import Invitation, NotificationSettings, Team, UserId
from src.ports.identity import Identity

# --- Mock Implementations ---


class StaleReadInvitationRepo:
    """Serves a stale snapshot on the first get_by_id, as a racing reader would see."""

    def __init__(self, inner: object, snapshot: Invitation) -> None:
        self._inner = inner
        self._snapshot = snapshot
        self._served = False

    def get_by_id(self, invitation_id: str) -> Invitation | None:
        if not self._served:
            self._served = True
            return self._snapshot
        return self._inner.get_by_id(invitation_id)

    def __getattr__(self, name: str) -> object:
        return getattr(self._inner, name)


# --- Helpers ---


def _invite(world, team: Team, admin: Identity, email: str, role: str = "member") -> Invitation:
    result = run_invite_to_team(
        InviteToTeamInput(team_id=team.id, email=email, role=role), world.ctx(admin)
    )
    assert result.success, result.error
    return result.invitation


# --- Invite ---


class TestInviteToTeam:
    def test_admin_invites_by_email(self, world, team: Team, admin: Identity) -> None:
        result = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="U2@Example.com "), world.ctx(admin)
        )

        assert result.success is True
        assert result.invitation.status == "pending"
        assert result.invitation.invited_email == "u2@example.com"
        assert result.invitation.invited_by_id == admin.user_id
        assert result.invitation.role == "member"

    def test_second_pending_invite_conflicts(self, world, team: Team, admin: Identity) -> None:
        first = _invite(world, team, admin, "u2@example.com")

        again = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="u2@example.com", role="viewer"),
            world.ctx(admin),
        )

        assert again.success is False
        assert again.error.kind == "conflict"
        assert again.error.resource == f"invitation:{first.id}"
        pending = [i for i in world.store.invitations.values() if i.status == "pending"]
        assert len(pending) == 1

    def test_can_reinvite_after_rejection(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        first = _invite(world, team, admin, "u2@example.com")
        run_reject_invitation(RejectInvitationInput(invitation_id=first.id), world.ctx(u2))

        again = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="u2@example.com"), world.ctx(admin)
        )

        assert again.success is True
        assert again.invitation.id != first.id

    def test_member_cannot_invite(self, world, team: Team, member: Identity) -> None:
        result = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="u2@example.com"), world.ctx(member)
        )

        assert result.error.kind == "forbidden"
        assert world.store.invitations == {}

    def test_existing_member_cannot_be_invited(
        self, world, team: Team, admin: Identity, member: Identity
    ) -> None:
        result = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email=member.email), world.ctx(admin)
        )

        assert result.error.kind == "conflict"

    def test_inviter_without_account_is_refused(
        self, world, team: Team, admin: Identity
    ) -> None:
        ghost = Identity(user_id=UserId("ghost"), email="ghost@example.com", display_name="Ghost")
        world.join(team, ghost, "admin")

        refused = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="u2@example.com"), world.ctx(ghost)
        )
        retried = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="u2@example.com"), world.ctx(admin)
        )

        assert refused.error.kind == "repository"
        assert retried.success is True
        assert list(world.store.invitations) == [retried.invitation.id]

    def test_validation(self, world, team: Team, admin: Identity) -> None:
        result = run_invite_to_team(
            InviteToTeamInput(team_id=team.id, email="not-an-email", role="owner"),
            world.ctx(admin),
        )

        assert result.error.kind == "validation"
        assert set(result.error.field_messages()) == {"email", "role"}

    def test_invitee_with_account_is_notified(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")

        invitation = _invite(world, team, admin, "u2@example.com")

        [notice] = world.store.notifications.values()
        assert notice.user_id == u2.user_id
        assert notice.type == "invitation"
        assert notice.metadata["invitation_id"] == invitation.id

    def test_notification_respects_settings(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        world.store.settings[u2.user_id] = NotificationSettings(
            user_id=u2.user_id, invitations=False
        )

        _invite(world, team, admin, "u2@example.com")

        assert world.store.notifications == {}

    def test_concurrent_invites_leave_one_pending(
        self, world, team: Team, admin: Identity
    ) -> None:
        results = []
        barrier = threading.Barrier(4)

        def invite() -> None:
            barrier.wait()
            results.append(
                run_invite_to_team(
                    InviteToTeamInput(team_id=team.id, email="race@example.com"),
                    world.ctx(admin),
                )
            )

        threads = [threading.Thread(target=invite) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.success for r in results) == 1
        assert {r.error.kind for r in results if not r.success} == {"conflict"}
        assert len(world.store.invitations) == 1


# --- Accept / Reject ---


class TestAcceptInvitation:
    def test_invitee_accepts_and_joins(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com", role="viewer")

        result = run_accept_invitation(
            AcceptInvitationInput(invitation_id=invitation.id), world.ctx(u2)
        )

        assert result.success is True
        assert result.already_member is False
        assert result.invitation.status == "accepted"
        assert result.member.role == "viewer"
        assert world.store.members[(team.id, u2.user_id)].role == "viewer"

    def test_email_match_is_case_insensitive(self, world, team: Team, admin: Identity) -> None:
        invitation = _invite(world, team, admin, "u2@example.com")
        u2 = Identity(user_id=world.user("u2@example.com").user_id, email="U2@EXAMPLE.COM",
                      display_name="U2")

        result = run_accept_invitation(
            AcceptInvitationInput(invitation_id=invitation.id), world.ctx(u2)
        )

        assert result.success is True

    def test_someone_else_cannot_accept(
        self, world, team: Team, admin: Identity, outsider: Identity
    ) -> None:
        invitation = _invite(world, team, admin, "u2@example.com")

        result = run_accept_invitation(
            AcceptInvitationInput(invitation_id=invitation.id), world.ctx(outsider)
        )

        assert result.error.kind == "forbidden"
        assert world.store.invitations[invitation.id].status == "pending"

    def test_accepting_twice_is_idempotent(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")
        ctx = world.ctx(u2)

        first = run_accept_invitation(AcceptInvitationInput(invitation_id=invitation.id), ctx)
        second = run_accept_invitation(AcceptInvitationInput(invitation_id=invitation.id), ctx)

        assert first.success is True
        assert second.success is True
        assert second.already_member is True
        assert ctx.members.count_by_team(team.id) == 4

    def test_existing_membership_is_kept(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com", role="admin")
        world.join(team, u2, "viewer")

        result = run_accept_invitation(
            AcceptInvitationInput(invitation_id=invitation.id), world.ctx(u2)
        )

        assert result.success is True
        assert result.already_member is True
        assert result.member.role == "viewer"
        assert world.store.invitations[invitation.id].status == "accepted"

    def test_rejected_invitation_cannot_be_accepted(
        self, world, team: Team, admin: Identity
    ) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")
        ctx = world.ctx(u2)
        run_reject_invitation(RejectInvitationInput(invitation_id=invitation.id), ctx)

        result = run_accept_invitation(AcceptInvitationInput(invitation_id=invitation.id), ctx)

        assert result.error.kind == "conflict"
        assert (team.id, u2.user_id) not in world.store.members

    def test_lost_race_resolves_to_idempotent_success(
        self, world, team: Team, admin: Identity
    ) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")
        ctx = world.ctx(u2)
        snapshot = ctx.invitations.get_by_id(invitation.id)
        run_accept_invitation(AcceptInvitationInput(invitation_id=invitation.id), ctx)

        racing = dataclasses.replace(
            ctx, invitations=StaleReadInvitationRepo(ctx.invitations, snapshot)
        )
        result = run_accept_invitation(AcceptInvitationInput(invitation_id=invitation.id), racing)

        assert result.success is True
        assert result.already_member is True

    def test_concurrent_accepts_create_one_membership(
        self, world, team: Team, admin: Identity
    ) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")
        results = []
        barrier = threading.Barrier(4)

        def accept() -> None:
            barrier.wait()
            results.append(
                run_accept_invitation(
                    AcceptInvitationInput(invitation_id=invitation.id), world.ctx(u2)
                )
            )

        threads = [threading.Thread(target=accept) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r.success for r in results)
        assert world.ctx(u2).members.count_by_team(team.id) == 4

    def test_unknown_invitation(self, world, admin: Identity) -> None:
        result = run_accept_invitation(
            AcceptInvitationInput(invitation_id="missing"), world.ctx(admin)
        )

        assert result.error.kind == "not_found"


class TestRejectInvitation:
    def test_invitee_rejects(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")

        result = run_reject_invitation(
            RejectInvitationInput(invitation_id=invitation.id), world.ctx(u2)
        )

        assert result.success is True
        assert result.invitation.status == "rejected"
        assert (team.id, u2.user_id) not in world.store.members

    def test_reject_is_terminal(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")
        ctx = world.ctx(u2)
        run_accept_invitation(AcceptInvitationInput(invitation_id=invitation.id), ctx)

        result = run_reject_invitation(RejectInvitationInput(invitation_id=invitation.id), ctx)

        assert result.error.kind == "conflict"
        assert world.store.invitations[invitation.id].status == "accepted"

    def test_admin_cannot_reject_on_behalf(self, world, team: Team, admin: Identity) -> None:
        invitation = _invite(world, team, admin, "u2@example.com")

        result = run_reject_invitation(
            RejectInvitationInput(invitation_id=invitation.id), world.ctx(admin)
        )

        assert result.error.kind == "forbidden"


# --- Read ---


class TestReadInvitations:
    def test_get_includes_team_and_inviter(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        invitation = _invite(world, team, admin, "u2@example.com")

        result = run_get_invitation(GetInvitationInput(invitation_id=invitation.id), world.ctx(u2))

        assert result.success is True
        assert result.invitation.team_name == "Eng"
        assert result.invitation.invited_by_name == "Ada Admin"

    def test_get_hidden_from_strangers(
        self, world, team: Team, admin: Identity, outsider: Identity
    ) -> None:
        invitation = _invite(world, team, admin, "u2@example.com")

        result = run_get_invitation(
            GetInvitationInput(invitation_id=invitation.id), world.ctx(outsider)
        )

        assert result.error.kind == "forbidden"

    def test_list_by_team_and_status(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        first = _invite(world, team, admin, "u2@example.com")
        _invite(world, team, admin, "u3@example.com")
        run_reject_invitation(RejectInvitationInput(invitation_id=first.id), world.ctx(u2))

        everything = run_list_invitations(ListInvitationsInput(team_id=team.id), world.ctx(admin))
        pending = run_list_invitations(
            ListInvitationsInput(team_id=team.id, status="pending"), world.ctx(admin)
        )

        assert everything.total == 2
        assert [i.invited_email for i in pending.invitations] == ["u3@example.com"]

    def test_team_listing_requires_invite_permission(
        self, world, team: Team, member: Identity
    ) -> None:
        result = run_list_invitations(ListInvitationsInput(team_id=team.id), world.ctx(member))

        assert result.error.kind == "forbidden"

    def test_cannot_list_other_peoples_invitations(self, world, outsider: Identity) -> None:
        result = run_list_invitations(
            ListInvitationsInput(invited_email="someone@example.com"), world.ctx(outsider)
        )

        assert result.error.kind == "forbidden"

    def test_list_my_pending_invitations(self, world, team: Team, admin: Identity) -> None:
        u2 = world.user("u2@example.com")
        other = world.team(admin, name="Design")
        _invite(world, team, admin, "u2@example.com")
        _invite(world, other, admin, "u2@example.com")
        _invite(world, team, admin, "u3@example.com")

        result = run_list_my_invitations(world.ctx(u2))

        assert result.success is True
        assert sorted(i.team_name for i in result.invitations) == ["Design", "Eng"]
