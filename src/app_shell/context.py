"""Wiring: build a UseCaseContext from adapters."""

from __future__ import annotations

from src.adapters.auth.identity import StaticIdentity
from src.adapters.auth.session_cache import SessionCache
from src.adapters.clock import SystemClock
from src.adapters.memory.repos import (
    MemoryInvitationRepo,
    MemoryKeyResultRepo,
    MemoryNotificationRepo,
    MemoryOkrRepo,
    MemoryReviewRepo,
    MemoryStore,
    MemoryTeamMemberRepo,
    MemoryTeamRepo,
    MemoryUserRepo,
)
from src.adapters.sqlite.repos import (
    SQLiteInvitationRepo,
    SQLiteKeyResultRepo,
    SQLiteNotificationRepo,
    SQLiteOkrRepo,
    SQLiteReviewRepo,
    SQLiteTeamMemberRepo,
    SQLiteTeamRepo,
    SQLiteUserRepo,
)
from src.components.context import UseCaseContext
from src.domain.policy import PolicyEngine
from src.ports.clock import ClockPort
from src.ports.identity import IdentityPort
from src.rules.models import Rules


def create_sqlite_context(
    db_path: str,
    rules: Rules,
    *,
    identity: IdentityPort | None = None,
    clock: ClockPort | None = None,
) -> UseCaseContext:
    clock = clock or SystemClock()
    return UseCaseContext(
        identity=identity or StaticIdentity(None),
        users=SQLiteUserRepo(db_path),
        teams=SQLiteTeamRepo(db_path),
        members=SQLiteTeamMemberRepo(db_path),
        invitations=SQLiteInvitationRepo(db_path),
        okrs=SQLiteOkrRepo(db_path),
        key_results=SQLiteKeyResultRepo(db_path),
        reviews=SQLiteReviewRepo(db_path),
        notifications=SQLiteNotificationRepo(db_path),
        policy=PolicyEngine(rules),
        rules=rules,
        clock=clock,
        session_cache=SessionCache(rules.sessions.cache_ttl_seconds, clock),
    )


def create_memory_context(
    rules: Rules,
    *,
    identity: IdentityPort | None = None,
    clock: ClockPort | None = None,
    store: MemoryStore | None = None,
) -> UseCaseContext:
    clock = clock or SystemClock()
    store = store or MemoryStore()
    return UseCaseContext(
        identity=identity or StaticIdentity(None),
        users=MemoryUserRepo(store),
        teams=MemoryTeamRepo(store),
        members=MemoryTeamMemberRepo(store),
        invitations=MemoryInvitationRepo(store),
        okrs=MemoryOkrRepo(store),
        key_results=MemoryKeyResultRepo(store),
        reviews=MemoryReviewRepo(store),
        notifications=MemoryNotificationRepo(store),
        policy=PolicyEngine(rules),
        rules=rules,
        clock=clock,
        session_cache=SessionCache(rules.sessions.cache_ttl_seconds, clock),
    )
