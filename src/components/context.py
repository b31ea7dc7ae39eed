from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from src.domain.policy import PolicyEngine
from src.ports.clock import ClockPort
from src.ports.identity import IdentityPort, SessionCachePort
from src.ports.repo import (
    InvitationRepoPort,
    KeyResultRepoPort,
    NotificationRepoPort,
    OkrRepoPort,
    ReviewRepoPort,
    TeamMemberRepoPort,
    TeamRepoPort,
    UserRepoPort,
)
from src.rules.models import Rules


@dataclass
class UseCaseContext:
    """
    Everything a use case needs, injected by the host.

    The repositories, policy and rules are process-wide; ``identity`` is per
    request, so hosts build one base context at startup and call
    ``for_request`` for each incoming request.
    """

    identity: IdentityPort
    users: UserRepoPort
    teams: TeamRepoPort
    members: TeamMemberRepoPort
    invitations: InvitationRepoPort
    okrs: OkrRepoPort
    key_results: KeyResultRepoPort
    reviews: ReviewRepoPort
    notifications: NotificationRepoPort
    policy: PolicyEngine
    rules: Rules
    clock: ClockPort
    session_cache: SessionCachePort | None = None

    def for_request(self, identity: IdentityPort) -> UseCaseContext:
        return dataclasses.replace(self, identity=identity)
