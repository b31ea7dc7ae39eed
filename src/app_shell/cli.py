import argparse
import logging
import sys

from src.adapters.auth.identity import StaticIdentity
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.config import Settings, load_settings, validate_ops_rules
from src.app_shell.context import create_sqlite_context
from src.components.teams import CreateTeamInput, run_create_team
from src.ports.identity import Identity
from src.rules.loader import load_rules

logger = logging.getLogger("cli")


def handle_migrate(settings: Settings, args: argparse.Namespace) -> int:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(str(settings.db_path), str(settings.migrations_dir))
    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")
    return 0


def handle_check_rules(settings: Settings, args: argparse.Namespace) -> int:
    try:
        rules = load_rules(settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1
    print(f"Rules OK: {rules.project.slug} v{rules.project.rules_version} ({settings.rules_path})")
    return 0


def handle_create_team(settings: Settings, args: argparse.Namespace) -> int:
    rules = load_rules(settings.rules_path)
    validate_ops_rules(rules, settings)

    ctx = create_sqlite_context(str(settings.db_path), rules)
    user = ctx.users.get_by_email(args.admin_email)
    if not user:
        logger.error("User %s not found. Invoke with the email of an existing user.", args.admin_email)
        return 1

    ctx = ctx.for_request(StaticIdentity(Identity(user.id, user.email, user.display_name)))
    result = run_create_team(
        CreateTeamInput(
            name=args.name,
            description=args.description,
            review_frequency=args.review_frequency,
        ),
        ctx,
    )
    if not result.success or result.team is None:
        assert result.error is not None
        logger.error("Could not create team: %s", result.error.message)
        for field, message in result.error.field_messages().items():
            logger.error("  %s: %s", field, message)
        return 1

    print(f"Team '{result.team.name}' created with id {result.team.id}; admin: {user.email}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="OKR tracker CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending SQL migrations")

    # check-rules
    subparsers.add_parser("check-rules", help="Load and validate rules.yaml")

    # create-team
    team_parser = subparsers.add_parser("create-team", help="Create a team for an existing user")
    team_parser.add_argument("name", help="Team name")
    team_parser.add_argument("--admin-email", required=True, help="Email of the first admin")
    team_parser.add_argument("--description", default=None)
    team_parser.add_argument(
        "--review-frequency", choices=["weekly", "biweekly", "monthly"], default=None
    )

    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    handlers = {
        "migrate": handle_migrate,
        "check-rules": handle_check_rules,
        "create-team": handle_create_team,
    }
    return handlers[args.command](settings, args)


if __name__ == "__main__":
    sys.exit(main())
