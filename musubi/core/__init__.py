"""Core sync functionality."""

from .config import ConfigManager, Settings, SyncConfig
from .orchestrator import SyncOrchestrator

__all__ = ["ConfigManager", "Settings", "SyncConfig", "SyncOrchestrator"]
