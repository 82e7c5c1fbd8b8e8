"""Centralized logging configuration.

Every module logs through ``logging.getLogger(__name__)``; this sets up the
handlers once for the command-line entry point.
"""

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: str = "musubi",
    level: str | None = None,
    log_file: Path | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure logging with consistent format.

    Args:
        name: Logger name to return
        level: Log level (defaults to LOG_LEVEL env var or INFO)
        log_file: Optional file path for logging output
        console: Whether to also log to stderr

    Returns:
        Configured logger instance
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")

    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    return logging.getLogger(name)
