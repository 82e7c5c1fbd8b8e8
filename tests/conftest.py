"""Pytest configuration and fixtures for sync manager tests."""

import stat
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from musubi.core.config import ConfigManager, Settings


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Settings isolated from the environment and the user's home directory."""
    return Settings(
        config_path=temp_dir / "config.json",
        log_dir=temp_dir / "logs",
        request_timeout=5.0,
        script_timeout=5.0,
        _env_file=None,
    )


@pytest.fixture
def scripts_dir(temp_dir: Path) -> Path:
    path = temp_dir / "scripts"
    path.mkdir()
    return path


@pytest.fixture
def make_script(scripts_dir: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable /bin/sh script into the scripts directory."""

    def _make(name: str, body: str) -> Path:
        script = scripts_dir / name
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def config_manager(temp_dir: Path) -> ConfigManager:
    """A ConfigManager pointed at a temporary config file."""
    return ConfigManager(temp_dir / "config.json")


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    reason_phrase: str = "OK",
    json_error: Exception | None = None,
) -> MagicMock:
    """Build a mock httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.reason_phrase = reason_phrase
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def response_factory() -> Callable[..., MagicMock]:
    """Factory for mock httpx responses."""
    return make_response
