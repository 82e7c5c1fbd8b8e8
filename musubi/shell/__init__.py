"""Script execution and script output parsing."""

from .health_output import HealthReport, parse_health_output
from .script_runner import ScriptRunner

__all__ = ["HealthReport", "ScriptRunner", "parse_health_output"]
