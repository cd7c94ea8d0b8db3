"""
Typed settings for every component.

Each YAML section maps to one pydantic-settings model. Secrets are read from
the environment or a .env file and never appear in config.yaml.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pitchdeck.config.loader import (
    ConfigurationError,
    load_config,
    load_prompts,
    merge_with_env,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
WILDCARD_HOSTS = ("0.0.0.0", "::", "")


class NotionSettings(BaseSettings):
    """Notion database settings."""

    model_config = SettingsConfigDict(env_prefix="NOTION_")

    database_id: str = ""


class RecordSettings(BaseSettings):
    """Flat-table cache settings."""

    model_config = SettingsConfigDict(env_prefix="RECORDS_")

    cache_path: Path = Path("notion-data.csv")


class StagingSettings(BaseSettings):
    """Local staging API settings."""

    model_config = SettingsConfigDict(env_prefix="STAGING_")

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)
    # Derived from host and port when unset
    url: Optional[str] = None
    use_for_fetch: bool = True
    request_timeout: float = 60.0

    @model_validator(mode="after")
    def default_url(self) -> "StagingSettings":
        if not self.url:
            host = "127.0.0.1" if self.host in WILDCARD_HOSTS else self.host
            self.url = f"http://{host}:{self.port}/api/notion-data"
        return self


class GoogleSettings(BaseSettings):
    """Google OAuth file locations."""

    model_config = SettingsConfigDict(env_prefix="GOOGLE_")

    credentials_path: Path = Path("credentials.json")
    token_path: Path = Path("token.json")


class SlideStyleSettings(BaseSettings):
    """Layout and title styling for generated slides."""

    model_config = SettingsConfigDict(env_prefix="SLIDES_")

    layout: str = "TITLE_AND_BODY"
    title_font_family: str = "Times New Roman"
    title_font_size: int = Field(default=25, ge=1, le=400)
    bullet_preset: str = "BULLET_DISC_CIRCLE_SQUARE"


class LLMSettings(BaseSettings):
    """Chat model serving endpoint and sampling parameters."""

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="allow")

    endpoint: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=1, le=32000)
    top_p: float = Field(default=0.95, gt=0.0, le=1.0)
    # Model/tool round trips allowed per user query
    max_tool_rounds: int = Field(default=25, ge=1)


class LoggingSettings(BaseSettings):
    """Root logger level, format and optional rotating file."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    max_file_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=5, ge=0)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}; expected one of {', '.join(LOG_LEVELS)}")
        return level


class TracingSettings(BaseSettings):
    """MLflow tracing settings for the chat client."""

    model_config = SettingsConfigDict(env_prefix="TRACING_")

    enabled: bool = False
    tracking_uri: str = "databricks"
    experiment_name: str = "/Shared/pitchdeck"


class AppSettings(BaseSettings):
    """Root settings object passed to the server, client and staging API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    # From the environment or .env
    notion_api_key: str = Field(default="", description="Notion integration token")

    # From config.yaml
    notion: NotionSettings
    records: RecordSettings
    staging: StagingSettings = Field(default_factory=StagingSettings)
    google: GoogleSettings
    slides: SlideStyleSettings = Field(default_factory=SlideStyleSettings)
    llm: LLMSettings
    logging: LoggingSettings
    tracing: TracingSettings = Field(default_factory=TracingSettings)

    # From prompts.yaml
    prompts: dict[str, Any] = Field(default_factory=dict)


# YAML section name -> settings model; sections not listed in the loader's
# required set may be omitted and fall back to defaults
SECTION_MODELS: dict[str, type[BaseSettings]] = {
    "notion": NotionSettings,
    "records": RecordSettings,
    "staging": StagingSettings,
    "google": GoogleSettings,
    "slides": SlideStyleSettings,
    "llm": LLMSettings,
    "logging": LoggingSettings,
    "tracing": TracingSettings,
}


def create_settings() -> AppSettings:
    """
    Build AppSettings from config.yaml, prompts.yaml and the environment.

    Raises:
        ConfigurationError: If a file is missing or a value fails validation
    """
    try:
        config = merge_with_env(load_config())
        sections = {
            name: model(**(config.get(name) or {}))
            for name, model in SECTION_MODELS.items()
        }
        return AppSettings(**sections, prompts=load_prompts())
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to create settings: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Process-wide settings, built on first use."""
    return create_settings()


def reload_settings() -> AppSettings:
    """Drop the cached settings and build them again."""
    get_settings.cache_clear()
    return get_settings()
