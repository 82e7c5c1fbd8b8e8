"""Utility functions and classes."""

from .errors import (
    ConfigurationError,
    ConfigurationUnavailableError,
    MusubiError,
    ProcessExecutionError,
    RequestError,
)
from .logging_config import setup_logging

__all__ = [
    "MusubiError",
    "RequestError",
    "ProcessExecutionError",
    "ConfigurationError",
    "ConfigurationUnavailableError",
    "setup_logging",
]
