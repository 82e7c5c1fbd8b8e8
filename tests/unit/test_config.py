"""Tests for Settings and ConfigManager."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from musubi.constants import DEFAULT_SCRIPTS_DIR, DEFAULT_WORKER_URL
from musubi.core.config import (
    ApiConfig,
    ConfigManager,
    Settings,
    SyncConfig,
)
from musubi.utils.errors import ConfigurationError, ConfigurationUnavailableError

SAVED_CONFIG = {
    "api": {"workerUrl": "https://worker.test", "todoistApiToken": "tok"},
    "sync": {"autoSync": False, "interval": 60000, "retryAttempts": 5},
    "paths": {"scripts": "/opt/sync/scripts", "logs": "/var/log/sync"},
}


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test default values when nothing is set."""
        for var in ("MUSUBI_REQUEST_TIMEOUT", "MUSUBI_SCRIPT_TIMEOUT", "MUSUBI_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.request_timeout == 30.0
        assert settings.script_timeout == 300.0
        assert settings.log_level == "INFO"
        assert settings.default_worker_url == DEFAULT_WORKER_URL

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test MUSUBI_ prefixed variables are read."""
        monkeypatch.setenv("MUSUBI_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("MUSUBI_CONFIG_PATH", str(tmp_path / "c.json"))
        monkeypatch.setenv("musubi_log_level", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.request_timeout == 2.5
        assert settings.config_path == tmp_path / "c.json"
        assert settings.log_level == "DEBUG"

    def test_non_positive_timeout_rejected(self):
        """Test deadlines must be positive."""
        with pytest.raises(ValidationError):
            Settings(request_timeout=0, _env_file=None)

    def test_get_log_file(self, settings: Settings):
        """Test log file names carry the component and the date."""
        log_file = settings.get_log_file("sync manager")

        assert log_file.parent == settings.log_dir
        assert log_file.name.startswith("sync_manager_")
        assert log_file.suffix == ".log"


class TestLoad:
    """Tests for ConfigManager.load."""

    def test_missing_file_uses_defaults(self, config_manager: ConfigManager):
        """Test a missing file yields defaults without error."""
        config = config_manager.load()

        assert config_manager.loaded is True
        assert config.api.worker_url == DEFAULT_WORKER_URL
        assert config.sync.auto_sync is True
        assert config.sync.interval_ms == 15 * 60 * 1000
        assert config.paths.scripts_dir == DEFAULT_SCRIPTS_DIR

    def test_missing_file_uses_configured_default_url(self, temp_dir: Path):
        """Test the default worker URL can be overridden."""
        manager = ConfigManager(temp_dir / "config.json", default_worker_url="https://d.test")

        assert manager.load().api.worker_url == "https://d.test"

    def test_loads_camel_case_file(self, config_manager: ConfigManager):
        """Test a saved file with the on-disk key names is read."""
        config_manager.config_path.write_text(json.dumps(SAVED_CONFIG))

        config = config_manager.load()

        assert config.api.worker_url == "https://worker.test"
        assert config.api.api_token == "tok"
        assert config.sync.auto_sync is False
        assert config.sync.interval_ms == 60000
        assert config.sync.retry_attempts == 5
        assert config.paths.scripts_dir == Path("/opt/sync/scripts")

    def test_partial_file_fills_defaults(self, config_manager: ConfigManager):
        """Test missing sections take their defaults."""
        config_manager.config_path.write_text(json.dumps({"api": {"workerUrl": ""}}))

        config = config_manager.load()

        assert config.has_worker is False
        assert config.sync.retry_attempts == 3

    def test_invalid_json_uses_defaults(self, config_manager: ConfigManager):
        """Test a corrupt file is not fatal."""
        config_manager.config_path.write_text("{not json")

        config = config_manager.load()

        assert config.api.worker_url == DEFAULT_WORKER_URL

    def test_invalid_values_use_defaults(self, config_manager: ConfigManager):
        """Test a file failing validation is not fatal."""
        config_manager.config_path.write_text(json.dumps({"sync": {"interval": -5}}))

        config = config_manager.load()

        assert config.sync.interval_ms == 15 * 60 * 1000


class TestSaveAndUpdate:
    """Tests for ConfigManager.save and update."""

    def test_save_writes_on_disk_keys(self, temp_dir: Path):
        """Test save creates parent directories and writes camelCase keys."""
        manager = ConfigManager(temp_dir / "nested" / "config.json")
        config = SyncConfig(api=ApiConfig(worker_url="https://worker.test"))

        manager.save(config)

        data = json.loads(manager.config_path.read_text())
        assert data["api"]["workerUrl"] == "https://worker.test"
        assert "autoSync" in data["sync"]
        assert "scripts" in data["paths"]
        assert manager.get_config() is config

    def test_save_then_load(self, config_manager: ConfigManager, temp_dir: Path):
        """Test a saved config is read back by a fresh manager."""
        config_manager.load()
        config_manager.update(api={"worker_url": "https://saved.test"})

        reloaded = ConfigManager(temp_dir / "config.json").load()

        assert reloaded.api.worker_url == "https://saved.test"

    def test_save_failure_raises(self, temp_dir: Path):
        """Test an unwritable location raises ConfigurationError."""
        blocker = temp_dir / "file"
        blocker.write_text("")
        manager = ConfigManager(blocker / "config.json")

        with pytest.raises(ConfigurationError, match="Failed to save config"):
            manager.save(SyncConfig())

    def test_update_merges_and_ignores_none(self, config_manager: ConfigManager):
        """Test update changes only the given non-None fields."""
        config_manager.load()

        config = config_manager.update(
            api={"worker_url": "https://new.test", "api_token": None},
            sync={"auto_sync": False},
        )

        assert config.api.worker_url == "https://new.test"
        assert config.api.api_token is None
        assert config.sync.auto_sync is False
        assert config.sync.interval_ms == 15 * 60 * 1000
        assert config_manager.config_path.exists()

    def test_update_strips_worker_url(self, config_manager: ConfigManager):
        """Test surrounding whitespace is removed from the worker URL."""
        config_manager.load()

        config = config_manager.update(api={"worker_url": "  https://w.test  "})

        assert config.api.worker_url == "https://w.test"

    def test_update_unknown_section(self, config_manager: ConfigManager):
        """Test an unknown section is rejected."""
        config_manager.load()

        with pytest.raises(ConfigurationError, match="Unknown config section"):
            config_manager.update(network={"proxy": "x"})

    def test_update_invalid_value(self, config_manager: ConfigManager):
        """Test an invalid value is rejected and nothing is saved."""
        config_manager.load()

        with pytest.raises(ConfigurationError, match="Invalid config"):
            config_manager.update(sync={"interval_ms": 0})

        assert not config_manager.config_path.exists()

    def test_update_before_load(self, config_manager: ConfigManager):
        """Test update needs a loaded config."""
        with pytest.raises(ConfigurationUnavailableError):
            config_manager.update(api={"worker_url": "https://w.test"})


class TestConfigState:
    """Tests for is_configured and get_config."""

    def test_get_config_before_load(self, config_manager: ConfigManager):
        """Test reading config before load raises."""
        assert config_manager.loaded is False

        with pytest.raises(ConfigurationUnavailableError, match="Config not loaded"):
            config_manager.get_config()

    def test_is_configured(self, config_manager: ConfigManager):
        """Test configured means a worker URL is set."""
        assert config_manager.is_configured() is False

        config_manager.load()
        assert config_manager.is_configured() is True

        config_manager.update(api={"worker_url": ""})
        assert config_manager.is_configured() is False

    def test_null_worker_url_means_no_worker(self):
        """Test a null worker URL is treated as empty."""
        config = SyncConfig.model_validate({"api": {"workerUrl": None}})

        assert config.api.worker_url == ""
        assert config.has_worker is False
