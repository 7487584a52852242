"""YAML config loading with env var expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import LLMSettings, WorkctlConfig

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = (
    "API key not configured.\n"
    "Set the environment variable named by llm.api_key_env "
    "(ANTHROPIC_API_KEY by default) or add llm.api_key to ~/.workctl/config.yaml."
)


class ConfigurationError(Exception):
    """A required setting, such as the model API key, is missing."""


def load_config(cli_path: str | None = None) -> WorkctlConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults.

    An explicit ``cli_path`` must exist. Empty files are skipped.
    """
    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    for path in _candidate_paths(cli_path):
        raw = _read_yaml(path)
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: top level must be a mapping")
        try:
            config = WorkctlConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("loaded config from %s", path)
        return config

    return WorkctlConfig()


def resolve_api_key(settings: LLMSettings) -> str:
    """Inline key first, then the configured environment variable."""
    if settings.api_key and settings.api_key.strip():
        return settings.api_key.strip()
    key = os.environ.get(settings.api_key_env, "").strip()
    if not key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    return key


def _candidate_paths(cli_path: str | None) -> list[Path]:
    paths = [Path(cli_path)] if cli_path else []
    paths.append(Path("workctl.yaml"))
    paths.append(Path.home() / ".workctl" / "config.yaml")
    return [p for p in paths if p.is_file()]


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `workctl config init`
DEFAULT_CONFIG_TEMPLATE = """\
# ~/.workctl/config.yaml

# Root folder holding 01_Projects/<name>/notes/
workspace: "~/Work"

# LLM Provider
llm:
  provider: "anthropic"        # anthropic | openai
  model: "claude-sonnet-4-20250514"
  api_key_env: "ANTHROPIC_API_KEY"
  # api_key: "${ANTHROPIC_API_KEY}"
  max_tokens: 4096
  timeout: 60

# Logging
log_level: "info"              # debug | info | warn | error
"""
