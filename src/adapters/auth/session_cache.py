"""In-memory, time-bounded cache of resolved sessions.

One instance is created at startup and handed to the request context, so
the cache lifetime and its invalidation are explicit. Safe to share across
threads.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.domain.entities import UserId
from src.ports.clock import ClockPort
from src.ports.identity import Identity


@dataclass(frozen=True)
class _Entry:
    identity: Identity
    expires_at: datetime


class SessionCache:
    """Token -> Identity cache with a fixed TTL per entry."""

    def __init__(self, ttl_seconds: int, clock: ClockPort) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> Identity | None:
        """Cached identity for a token, or None if absent or expired."""
        now = self._clock.now_utc()
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self._entries[token]
                return None
            return entry.identity

    def put(self, token: str, identity: Identity) -> None:
        """Cache an identity. Expired entries are swept on every put."""
        now = self._clock.now_utc()
        with self._lock:
            expired = [t for t, e in self._entries.items() if e.expires_at <= now]
            for stale in expired:
                del self._entries[stale]
            self._entries[token] = _Entry(identity, now + self._ttl)

    def invalidate(self, token: str) -> None:
        with self._lock:
            self._entries.pop(token, None)

    def invalidate_user(self, user_id: UserId) -> int:
        """Drop every cached session for a user. Returns count dropped."""
        with self._lock:
            tokens = [t for t, e in self._entries.items() if e.identity.user_id == user_id]
            for token in tokens:
                del self._entries[token]
        return len(tokens)

    def clear(self) -> None:
        """Clear all entries - useful for testing."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
