"""
Fixtures shared by the component unit tests.

Every test gets a fresh in-memory store and a clock frozen on
2024-05-15 (inside 2024-Q2). ``world.ctx(identity)`` builds a context that
acts as that identity over the shared store.
"""

from __future__ import annotations

from datetime import date

import pytest

from src.adapters.auth.identity import StaticIdentity
from src.adapters.clock import FrozenClock
from src.adapters.memory.repos import MemoryStore
from src.app_shell.context import create_memory_context
from src.components.context import UseCaseContext
from src.components.okrs import CreateOkrInput, KeyResultDraft, run_create_okr
from src.components.teams import CreateTeamInput, run_create_team
from src.domain.entities import OkrWithKeyResults, Team, TeamMember, TeamRole, User, UserId
from src.ports.identity import Identity
from src.rules.loader import load_rules
from src.rules.models import Rules

TODAY = date(2024, 5, 15)


class World:
    def __init__(self, rules: Rules, clock: FrozenClock) -> None:
        self.rules = rules
        self.clock = clock
        self.store = MemoryStore()

    def ctx(self, identity: Identity | None) -> UseCaseContext:
        return create_memory_context(
            self.rules, identity=StaticIdentity(identity), clock=self.clock, store=self.store
        )

    def user(self, email: str, name: str | None = None) -> Identity:
        user = User(email=email, display_name=name or email.split("@")[0].title())
        self.store.users[user.id] = user
        return Identity(user_id=UserId(user.id), email=user.email, display_name=user.display_name)

    def team(self, admin: Identity, name: str = "Eng") -> Team:
        result = run_create_team(CreateTeamInput(name=name), self.ctx(admin))
        assert result.success, result.error
        assert result.team is not None
        return result.team

    def join(self, team: Team, who: Identity, role: TeamRole) -> None:
        self.store.members[(team.id, who.user_id)] = TeamMember(
            team_id=team.id, user_id=who.user_id, role=role, joined_at=self.clock.now_utc()
        )

    def okr(
        self,
        owner: Identity,
        team: Team,
        *,
        title: str = "Ship v2",
        type: str = "team",
        year: int = 2024,
        quarter: int = 2,
        key_results: list[KeyResultDraft] | None = None,
    ) -> OkrWithKeyResults:
        result = run_create_okr(
            CreateOkrInput(
                team_id=team.id,
                title=title,
                type=type,
                quarter_year=year,
                quarter_quarter=quarter,
                key_results=key_results or [KeyResultDraft(title="Close tickets", target_value=10)],
            ),
            self.ctx(owner),
        )
        assert result.success, result.error
        assert result.okr is not None
        return result.okr


@pytest.fixture
def rules() -> Rules:
    return load_rules()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock.on(TODAY)


@pytest.fixture
def world(rules: Rules, clock: FrozenClock) -> World:
    return World(rules, clock)


@pytest.fixture
def admin(world: World) -> Identity:
    return world.user("admin@example.com", "Ada Admin")


@pytest.fixture
def member(world: World) -> Identity:
    return world.user("member@example.com", "Max Member")


@pytest.fixture
def viewer(world: World) -> Identity:
    return world.user("viewer@example.com", "Vic Viewer")


@pytest.fixture
def outsider(world: World) -> Identity:
    return world.user("outsider@example.com", "Olly Outsider")


@pytest.fixture
def team(world: World, admin: Identity, member: Identity, viewer: Identity) -> Team:
    """Team "Eng": admin (creator), member and viewer."""
    team = world.team(admin)
    world.join(team, member, "member")
    world.join(team, viewer, "viewer")
    return team
