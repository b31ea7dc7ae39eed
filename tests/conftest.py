from collections.abc import Callable
from datetime import date

import pytest

from src.adapters.auth.identity import StaticIdentity
from src.adapters.clock import FrozenClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.app_shell.context import create_sqlite_context
from src.components.context import UseCaseContext
from src.domain.entities import User, UserId
from src.ports.identity import Identity
from src.rules.loader import PROJECT_ROOT, load_rules
from src.rules.models import Rules

MIGRATIONS_DIR = str(PROJECT_ROOT / "migrations")


@pytest.fixture
def rules() -> Rules:
    # The real rules file doubles as a smoke test of its schema.
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock.on(date(2024, 5, 15))


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "okr.db")


@pytest.fixture
def migrated_db(db_path) -> str:
    SQLiteMigrator(db_path, MIGRATIONS_DIR).run_migrations()
    return db_path


@pytest.fixture
def add_user(migrated_db) -> Callable[[str], Identity]:
    """Insert a user row and return the matching Identity."""
    repo = SQLiteUserRepo(migrated_db)

    def _add(email: str, display_name: str | None = None) -> Identity:
        user = repo.save(User(email=email, display_name=display_name or email.split("@")[0]))
        return Identity(user_id=UserId(user.id), email=user.email, display_name=user.display_name)

    return _add


@pytest.fixture
def sqlite_ctx(migrated_db, rules, clock) -> Callable[[Identity | None], UseCaseContext]:
    """Build a SQLite-backed context acting as the given identity."""
    base = create_sqlite_context(migrated_db, rules, clock=clock)

    def _ctx(identity: Identity | None) -> UseCaseContext:
        return base.for_request(StaticIdentity(identity))

    return _ctx
