import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from src.rules.loader import PROJECT_ROOT, RULES_ENV_VAR, default_rules_path
from src.rules.models import Rules

logger = logging.getLogger(__name__)

DATA_DIR_ENV_VAR = "OKR_DATA_DIR"
LOG_LEVEL_ENV_VAR = "OKR_LOG_LEVEL"
DB_FILENAME = "okr.db"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    rules_path: Path
    log_level: str = "INFO"
    migrations_dir: Path = PROJECT_ROOT / "migrations"

    @property
    def db_path(self) -> Path:
        return self.data_dir / DB_FILENAME


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    data_dir = Path(env.get(DATA_DIR_ENV_VAR) or PROJECT_ROOT / "data")
    rules_path = Path(env[RULES_ENV_VAR]) if env.get(RULES_ENV_VAR) else default_rules_path()
    log_level = (env.get(LOG_LEVEL_ENV_VAR) or "INFO").upper()
    if log_level not in logging.getLevelNamesMapping():
        raise ValueError(f"{LOG_LEVEL_ENV_VAR} must be a logging level name, got {log_level!r}")
    return Settings(data_dir=data_dir, rules_path=rules_path, log_level=log_level)


def validate_ops_rules(
    rules: Rules, settings: Settings, environ: Mapping[str, str] | None = None
) -> None:
    """
    Validate operational requirements before startup. Exits the process if
    required environment variables are missing.
    """
    env = os.environ if environ is None else environ
    ops = rules.ops

    if ops.data_dir_required:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(settings.data_dir, os.W_OK):
            logger.critical("Data directory %s is not writable", settings.data_dir)
            sys.exit(1)

    missing = [name for name in ops.required_env if name not in env]
    if missing:
        logger.critical("Missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)

    logger.info("Configuration validated")
