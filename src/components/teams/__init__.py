"""
Teams component - team lifecycle and membership.

Creates, updates and deletes teams, lists members, and changes or removes
memberships while keeping at least one admin per team.
"""

from .component import (
    run_create_team,
    run_delete_team,
    run_get_team,
    run_list_members,
    run_list_user_teams,
    run_remove_member,
    run_update_member_role,
    run_update_team,
)
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

__all__ = [
    # Entry points
    "run_create_team",
    "run_delete_team",
    "run_get_team",
    "run_list_members",
    "run_list_user_teams",
    "run_remove_member",
    "run_update_member_role",
    "run_update_team",
    # Input models
    "CreateTeamInput",
    "DeleteTeamInput",
    "GetTeamInput",
    "ListMembersInput",
    "RemoveMemberInput",
    "UpdateMemberRoleInput",
    "UpdateTeamInput",
    # Output models
    "MemberListOutput",
    "MemberOutput",
    "TeamListOutput",
    "TeamOutput",
    "TeamSummary",
]
