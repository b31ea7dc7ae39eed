import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
RULES_ENV_VAR = "OKR_RULES_PATH"


def default_rules_path() -> Path:
    """$OKR_RULES_PATH if set, else rules.yaml at the project root."""
    override = os.environ.get(RULES_ENV_VAR)
    if override:
        return Path(override)
    return PROJECT_ROOT / "rules.yaml"


def _extract_yaml(content: str) -> str:
    # Rules may be kept inside a markdown-style ```yaml fence; take the first one.
    lines = content.splitlines()
    block: list[str] = []
    in_block = False

    for line in lines:
        stripped = line.strip()
        if stripped.startswith("```yaml"):
            in_block = True
            continue
        if in_block and stripped.startswith("```"):
            return "\n".join(block)
        if in_block:
            block.append(line)

    if in_block:
        raise ValueError("Unterminated ```yaml block in rules file")
    return content


def parse_rules(content: str) -> Rules:
    try:
        data = yaml.safe_load(_extract_yaml(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a mapping at the top level")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: Path | None = None) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if the file is missing and ValueError if it does
    not parse or does not match the schema.
    """
    path = path or default_rules_path()
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    rules = parse_rules(path.read_text())
    logger.debug("Loaded rules %s v%s from %s", rules.project.slug, rules.project.rules_version, path)
    return rules
