from dataclasses import dataclass
from typing import Protocol

from src.domain.entities import UserId


@dataclass(frozen=True)
class Identity:
    """An already-authenticated user, as resolved by the host's session layer."""

    user_id: UserId
    email: str
    display_name: str


class IdentityPort(Protocol):
    def current(self) -> Identity | None:
        """The identity for the current request, or None if there is no session."""
        ...


class SessionLookupPort(Protocol):
    def resolve(self, token: str) -> Identity | None:
        """Resolve a session token to an identity. None if unknown or expired."""
        ...


class SessionCachePort(Protocol):
    def invalidate(self, token: str) -> None:
        ...

    def invalidate_user(self, user_id: UserId) -> int:
        """Drop every cached session for a user. Returns count dropped."""
        ...
