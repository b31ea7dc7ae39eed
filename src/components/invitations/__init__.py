"""
Invitations component - team invitation workflow.

Admins invite by email; the invited user accepts (becoming a member with the
invited role) or rejects. At most one invitation per (team, email) is
pending at any time.
"""

from .component import (
    run_accept_invitation,
    run_get_invitation,
    run_invite_to_team,
    run_list_invitations,
    run_list_my_invitations,
    run_reject_invitation,
)
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

__all__ = [
    # Entry points
    "run_accept_invitation",
    "run_get_invitation",
    "run_invite_to_team",
    "run_list_invitations",
    "run_list_my_invitations",
    "run_reject_invitation",
    # Input models
    "AcceptInvitationInput",
    "GetInvitationInput",
    "InviteToTeamInput",
    "ListInvitationsInput",
    "RejectInvitationInput",
    # Output models
    "AcceptOutput",
    "InvitationListOutput",
    "InvitationOutput",
]
