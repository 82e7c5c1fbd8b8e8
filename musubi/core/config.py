"""Configuration management for the sync manager.

Two layers:

- ``Settings`` holds process-level knobs read from the environment (or a
  ``.env`` file) with the ``MUSUBI_`` prefix.
- ``SyncConfig`` is the user's saved configuration, persisted as JSON by
  ``ConfigManager`` and handed explicitly to the orchestrator.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import DEFAULT_SCRIPTS_DIR, DEFAULT_WORKER_URL
from ..utils.errors import ConfigurationError, ConfigurationUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".todoist-things-sync" / "config.json"
DEFAULT_SYNC_INTERVAL_MS = 15 * 60 * 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MUSUBI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    config_path: Path = Field(
        default=DEFAULT_CONFIG_PATH, description="Location of the saved JSON configuration"
    )
    default_worker_url: str = Field(
        default=DEFAULT_WORKER_URL,
        description="Worker URL used when no configuration file exists yet",
    )

    # Deadlines
    request_timeout: float = Field(
        default=30.0, gt=0, description="Seconds before a worker request is abandoned"
    )
    script_timeout: float = Field(
        default=300.0, gt=0, description="Seconds before a sync script is killed"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(
        default=Path.home() / ".musubi" / "logs",
        description="Directory for log files",
    )

    def get_log_file(self, component_name: str = "musubi") -> Path:
        """Get a log file path for a specific component.

        Creates log files with the format: {component_name}_{date}.log
        e.g., musubi_2024-01-15.log

        Args:
            component_name: Name of the component

        Returns:
            Path to the log file
        """
        date_str = datetime.now().strftime("%Y-%m-%d")
        # Sanitize component name for filesystem
        safe_name = "".join(c if c.isalnum() or c in "_-" else "_" for c in component_name)
        return self.log_dir / f"{safe_name}_{date_str}.log"


class ConfigSection(BaseModel):
    """Saved config sections use camelCase keys on disk."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApiConfig(ConfigSection):
    worker_url: str = Field(default=DEFAULT_WORKER_URL, alias="workerUrl")
    api_token: str | None = Field(default=None, alias="todoistApiToken")
    repair_auth_token: str | None = Field(default=None, alias="repairAuthToken")

    @field_validator("worker_url", mode="before")
    @classmethod
    def strip_worker_url(cls, v: Any) -> Any:
        """Treat a missing URL like an empty one; blank means "no worker"."""
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class SyncSettings(ConfigSection):
    auto_sync: bool = Field(default=True, alias="autoSync")
    interval_ms: int = Field(default=DEFAULT_SYNC_INTERVAL_MS, gt=0, alias="interval")
    retry_attempts: int = Field(default=3, ge=0, alias="retryAttempts")


class PathsConfig(ConfigSection):
    scripts_dir: Path = Field(default=DEFAULT_SCRIPTS_DIR, alias="scripts")
    logs_dir: Path = Field(
        default=Path.home() / ".todoist-things-sync" / "logs", alias="logs"
    )
    notes_vault: Path | None = Field(default=None, alias="obsidianVault")


class SyncConfig(ConfigSection):
    """The user's saved configuration."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    @property
    def has_worker(self) -> bool:
        return bool(self.api.worker_url)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), indent=2)


class ConfigManager:
    """Loads and saves ``SyncConfig`` at an explicit path.

    Usage:
        manager = ConfigManager(settings.config_path)
        manager.load()
        if not manager.is_configured():
            manager.update(api={"worker_url": "https://..."})
    """

    def __init__(
        self,
        config_path: Path | str = DEFAULT_CONFIG_PATH,
        default_worker_url: str = DEFAULT_WORKER_URL,
    ):
        self.config_path = Path(config_path)
        self._default_worker_url = default_worker_url
        self._config: SyncConfig | None = None

    @property
    def loaded(self) -> bool:
        return self._config is not None

    def default_config(self) -> SyncConfig:
        """Configuration used when nothing has been saved yet."""
        return SyncConfig(api=ApiConfig(worker_url=self._default_worker_url))

    def load(self) -> SyncConfig:
        """Load configuration from disk, falling back to defaults.

        A missing, unreadable or invalid file is not an error: the defaults
        are used and the problem is logged.
        """
        try:
            raw = self.config_path.read_text(encoding="utf-8")
            self._config = SyncConfig.model_validate(json.loads(raw))
            logger.debug(f"Loaded config from {self.config_path}")
        except FileNotFoundError:
            logger.info(f"No config at {self.config_path}, using defaults")
            self._config = self.default_config()
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Invalid config at {self.config_path}, using defaults: {e}")
            self._config = self.default_config()
        return self._config

    def save(self, config: SyncConfig) -> None:
        """Persist configuration and make it the current one.

        Raises:
            ConfigurationError: If the file cannot be written
        """
        self._config = config
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(config.to_json(), encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to save config: {e}") from e
        logger.info(f"Saved config to {self.config_path}")

    def update(self, **sections: dict[str, Any]) -> SyncConfig:
        """Merge partial sections into the current config and save it.

        Keys are field names (``worker_url``, ``auto_sync``...); ``None``
        values are ignored.

        Raises:
            ConfigurationUnavailableError: If no config has been loaded
            ConfigurationError: If a section is unknown or a value is invalid
        """
        current = self.get_config().model_dump()
        for name, values in sections.items():
            if name not in current:
                raise ConfigurationError(f"Unknown config section: {name}")
            current[name].update({k: v for k, v in values.items() if v is not None})

        try:
            updated = SyncConfig.model_validate(current)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config: {e}") from e

        self.save(updated)
        return updated

    def is_configured(self) -> bool:
        """Configured means at least a worker URL is set."""
        return self._config is not None and self._config.has_worker

    def get_config(self) -> SyncConfig:
        """Return the current config.

        Raises:
            ConfigurationUnavailableError: If load() or save() has not run
        """
        if self._config is None:
            raise ConfigurationUnavailableError()
        return self._config
