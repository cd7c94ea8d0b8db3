"""
YAML configuration files for the pitch deck pipeline.

``config.yaml`` holds application settings and ``prompts.yaml`` the chat
model's system prompt. Both are looked up in a single config directory.
"""

import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILE = "config.yaml"
PROMPTS_FILE = "prompts.yaml"

REQUIRED_SECTIONS = ("notion", "records", "google", "llm", "logging")
REQUIRED_PROMPTS = ("system_prompt",)


class ConfigurationError(Exception):
    """Raised when configuration files are missing, unreadable or invalid."""

    pass


def get_config_dir() -> Path:
    """
    Resolve the config directory.

    ``PITCHDECK_CONFIG_DIR`` wins, then ``./config`` under the working
    directory, then the ``config`` directory next to ``src``.
    """
    if override := os.getenv("PITCHDECK_CONFIG_DIR"):
        return Path(override)

    cwd_config = Path.cwd() / "config"
    if cwd_config.is_dir():
        return cwd_config

    return Path(__file__).resolve().parents[3] / "config"


def get_config_path(filename: str) -> Path:
    """
    Locate one file inside the config directory.

    Raises:
        ConfigurationError: If the file is absent
    """
    path = get_config_dir() / filename
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}. "
            "Set PITCHDECK_CONFIG_DIR or run from the project root."
        )
    return path


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """
    Parse a YAML file whose top level is a mapping.

    Raises:
        ConfigurationError: If the file cannot be read, is empty, is not
            valid YAML or is not a mapping
    """
    try:
        content = yaml.safe_load(Path(file_path).read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML file {file_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read file {file_path}: {e}") from e

    if content is None:
        raise ConfigurationError(f"YAML file is empty: {file_path}")
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"YAML file must contain a dictionary at root level: {file_path}"
        )
    return content


def _load_with_required(filename: str, required: tuple[str, ...], kind: str) -> dict[str, Any]:
    data = load_yaml_file(get_config_path(filename))
    missing = [key for key in required if key not in data]
    if missing:
        raise ConfigurationError(f"Missing required {kind}: {', '.join(missing)}")
    return data


def load_config() -> dict[str, Any]:
    """Load ``config.yaml`` and check that every required section is present."""
    return _load_with_required(CONFIG_FILE, REQUIRED_SECTIONS, "configuration sections")


def load_prompts() -> dict[str, Any]:
    """Load ``prompts.yaml`` and check that the system prompt is present."""
    return _load_with_required(PROMPTS_FILE, REQUIRED_PROMPTS, "prompts")


# Environment variable -> (section, key, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Any]] = {
    "NOTION_DATABASE_ID": ("notion", "database_id", str),
    "STAGING_PORT": ("staging", "port", int),
    "STAGING_URL": ("staging", "url", str),
    "LOG_LEVEL": ("logging", "level", str.upper),
    "LLM_ENDPOINT": ("llm", "endpoint", str),
}


def merge_with_env(config: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment overrides to a copy of the parsed config.

    Values that fail conversion (a non-numeric ``STAGING_PORT``) are ignored.
    The input mapping is left untouched.
    """
    merged = {
        key: dict(value) if isinstance(value, dict) else value
        for key, value in config.items()
    }

    for env_name, (section, key, convert) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if not raw:
            continue
        try:
            value = convert(raw)
        except ValueError:
            continue
        merged.setdefault(section, {})[key] = value

    return merged
