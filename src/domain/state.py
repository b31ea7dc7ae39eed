from datetime import datetime

from src.domain.entities import Invitation, InvitationStatus

# pending is the only state with outgoing edges; accepted/rejected are terminal.
_TRANSITIONS: dict[InvitationStatus, frozenset[InvitationStatus]] = {
    "pending": frozenset({"accepted", "rejected"}),
    "accepted": frozenset(),
    "rejected": frozenset(),
}


def can_transition(current: InvitationStatus, new: InvitationStatus) -> bool:
    """
    Determine if an invitation may move from ``current`` to ``new``.
    Self-transitions are not allowed: nothing re-enters pending and terminal
    states never move.
    """
    return new in _TRANSITIONS[current]


def transition(invitation: Invitation, new_status: InvitationStatus, now: datetime) -> Invitation:
    """
    Return a NEW Invitation with the updated status and timestamp.
    Raises ValueError if the transition is invalid.
    """
    if not can_transition(invitation.status, new_status):
        raise ValueError(f"Invalid transition from {invitation.status} to {new_status}")

    return invitation.model_copy(update={"status": new_status, "updated_at": now})
