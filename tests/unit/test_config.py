"""
Unit tests for configuration loading, settings and logging setup.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from pitchdeck.config import configure_logging
from pitchdeck.config.loader import (
    ConfigurationError,
    get_config_dir,
    get_config_path,
    load_config,
    load_prompts,
    load_yaml_file,
    merge_with_env,
)
from pitchdeck.config.settings import (
    LLMSettings,
    LoggingSettings,
    StagingSettings,
    create_settings,
    get_settings,
    reload_settings,
)

BASE_CONFIG = {
    "notion": {"database_id": "db-yaml"},
    "records": {"cache_path": "data/notion-data.csv"},
    "staging": {"port": 9090},
    "google": {"credentials_path": "credentials.json", "token_path": "token.json"},
    "llm": {"endpoint": "databricks-test", "temperature": 0.2},
    "logging": {"level": "INFO"},
}


@pytest.fixture
def config_dir(tmp_path: Path):
    """Write config.yaml and prompts.yaml and point the loader at them."""
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "config.yaml").write_text(yaml.dump(BASE_CONFIG))
    (directory / "prompts.yaml").write_text(yaml.dump({"system_prompt": "Be helpful."}))

    env = {"PITCHDECK_CONFIG_DIR": str(directory)}
    with patch.dict(os.environ, env):
        for key in ("NOTION_DATABASE_ID", "STAGING_PORT", "STAGING_URL", "LOG_LEVEL", "LLM_ENDPOINT"):
            os.environ.pop(key, None)
        yield directory


class TestLoader:
    """Tests for the YAML loader."""

    def test_config_dir_override(self, config_dir):
        assert get_config_dir() == config_dir

    def test_config_path_not_found(self, config_dir):
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            get_config_path("nonexistent.yaml")

    def test_load_empty_yaml(self, tmp_path: Path):
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        with pytest.raises(ConfigurationError, match="YAML file is empty"):
            load_yaml_file(yaml_file)

    def test_load_invalid_yaml(self, tmp_path: Path):
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("key: [\ninvalid")

        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_yaml_file(yaml_file)

    def test_load_non_dict_yaml(self, tmp_path: Path):
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- item1\n- item2")

        with pytest.raises(ConfigurationError, match="must contain a dictionary"):
            load_yaml_file(yaml_file)

    def test_load_config(self, config_dir):
        config = load_config()
        assert config["notion"]["database_id"] == "db-yaml"

    def test_missing_sections(self, config_dir):
        (config_dir / "config.yaml").write_text(yaml.dump({"notion": {}}))

        with pytest.raises(ConfigurationError, match="records, google, llm, logging"):
            load_config()

    def test_missing_system_prompt(self, config_dir):
        (config_dir / "prompts.yaml").write_text(yaml.dump({"other": "x"}))

        with pytest.raises(ConfigurationError, match="system_prompt"):
            load_prompts()


class TestMergeWithEnv:
    """Tests for environment overrides."""

    def test_overrides(self):
        env = {
            "NOTION_DATABASE_ID": "db-env",
            "STAGING_PORT": "7000",
            "LOG_LEVEL": "debug",
            "LLM_ENDPOINT": "other-endpoint",
        }
        with patch.dict(os.environ, env):
            merged = merge_with_env(BASE_CONFIG)

        assert merged["notion"]["database_id"] == "db-env"
        assert merged["staging"]["port"] == 7000
        assert merged["logging"]["level"] == "DEBUG"
        assert merged["llm"]["endpoint"] == "other-endpoint"
        assert BASE_CONFIG["notion"]["database_id"] == "db-yaml"

    def test_invalid_port_ignored(self):
        with patch.dict(os.environ, {"STAGING_PORT": "not-a-port"}):
            merged = merge_with_env(BASE_CONFIG)

        assert merged["staging"]["port"] == 9090


class TestSettings:
    """Tests for settings creation."""

    def test_create_settings(self, config_dir):
        with patch.dict(os.environ, {"NOTION_API_KEY": "secret_abc"}):
            settings = create_settings()

        assert settings.notion_api_key == "secret_abc"
        assert settings.notion.database_id == "db-yaml"
        assert settings.records.cache_path == Path("data/notion-data.csv")
        assert settings.staging.port == 9090
        assert settings.llm.temperature == 0.2
        assert settings.llm.max_tool_rounds == 25
        assert settings.slides.layout == "TITLE_AND_BODY"
        assert settings.tracing.enabled is False
        assert settings.prompts["system_prompt"] == "Be helpful."

    def test_invalid_values_become_configuration_error(self, config_dir):
        config = dict(BASE_CONFIG, llm={"endpoint": "x", "temperature": 5})
        (config_dir / "config.yaml").write_text(yaml.dump(config))

        with pytest.raises(ConfigurationError, match="Failed to create settings"):
            create_settings()

    def test_staging_url_follows_port_override(self, config_dir):
        with patch.dict(os.environ, {"STAGING_PORT": "9000"}):
            settings = reload_settings()

        assert settings.staging.port == 9000
        assert settings.staging.url == "http://127.0.0.1:9000/api/notion-data"

    def test_explicit_staging_url_kept(self, config_dir):
        env = {"STAGING_PORT": "9000", "STAGING_URL": "http://stage.internal/api/notion-data"}
        with patch.dict(os.environ, env):
            settings = create_settings()

        assert settings.staging.url == "http://stage.internal/api/notion-data"

    def test_get_settings_cached(self, config_dir):
        assert get_settings() is get_settings()
        assert reload_settings() is get_settings()

    def test_field_validators(self):
        with pytest.raises(ValueError):
            StagingSettings(port=70000)
        assert StagingSettings(host="0.0.0.0", port=8081).url == "http://127.0.0.1:8081/api/notion-data"
        with pytest.raises(ValueError):
            LLMSettings(endpoint="x", max_tool_rounds=0)
        assert LoggingSettings(level="warning").level == "WARNING"


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_stderr_only_by_default(self):
        configure_logging(LoggingSettings(level="DEBUG"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert getattr(root.handlers[0], "stream", None) is not None

    def test_rotating_file(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "pitchdeck.log"

        configure_logging(LoggingSettings(log_file=str(log_file), backup_count=2))
        logging.getLogger("pitchdeck.test").info("hello")

        root = logging.getLogger()
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].backupCount == 2
        for handler in file_handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
