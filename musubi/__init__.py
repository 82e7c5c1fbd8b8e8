"""Musubi - status aggregation for Todoist, Things and Obsidian sync."""

__version__ = "0.1.0"

from .clients.worker_client import WorkerClient
from .core import ConfigManager, Settings, SyncConfig, SyncOrchestrator
from .models import (
    DuplicateCleanupResult,
    HealthStatus,
    MetricsReport,
    Platform,
    PlatformStatus,
    ScriptResult,
    SyncResult,
    SyncStatus,
    WorkerHealth,
    WorkerTask,
)
from .shell import HealthReport, ScriptRunner, parse_health_output
from .utils.errors import (
    ConfigurationError,
    ConfigurationUnavailableError,
    MusubiError,
    ProcessExecutionError,
    RequestError,
)

__all__ = [
    "SyncOrchestrator",
    "ConfigManager",
    "Settings",
    "SyncConfig",
    "WorkerClient",
    "ScriptRunner",
    "HealthReport",
    "parse_health_output",
    # Data model
    "Platform",
    "PlatformStatus",
    "SyncStatus",
    "SyncResult",
    "HealthStatus",
    "DuplicateCleanupResult",
    "ScriptResult",
    "WorkerHealth",
    "WorkerTask",
    "MetricsReport",
    # Errors
    "MusubiError",
    "RequestError",
    "ProcessExecutionError",
    "ConfigurationError",
    "ConfigurationUnavailableError",
]
