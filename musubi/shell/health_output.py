"""Parsing of ``check-sync-health.sh`` output.

The health script prints free text. The lines this module understands:

    Todoist tasks: 42
    Things tasks: 6        (or "Things tasks: N/A" when Things is closed)
    Things not running
"""

import re
from dataclasses import dataclass

REMOTE_COUNT_PATTERN = re.compile(r"Todoist tasks:\s*(\d+)", re.IGNORECASE)
LOCAL_COUNT_PATTERN = re.compile(r"Things tasks:\s*(\d+|N/A)", re.IGNORECASE)
LOCAL_NOT_RUNNING_PATTERN = re.compile(r"Things not running", re.IGNORECASE)


@dataclass(frozen=True)
class HealthReport:
    """Facts extracted from one run of the health script.

    Attributes:
        remote_count: Todoist task count, if printed
        local_count: Things task count, if printed as a number
        local_not_running: Whether the script reported Things as not running
    """

    remote_count: int | None = None
    local_count: int | None = None
    local_not_running: bool = False

    @property
    def local_online(self) -> bool:
        """Things is online only with a numeric count and no "not running" marker."""
        return self.local_count is not None and not self.local_not_running


def parse_health_output(text: str | None) -> HealthReport:
    """Extract platform counts and Things state from health script output.

    Args:
        text: Script stdout (None is treated as empty)

    Returns:
        HealthReport with whatever could be parsed

    Examples:
        >>> parse_health_output("Todoist tasks: 42").remote_count
        42
        >>> parse_health_output("Things tasks: N/A").local_count is None
        True
    """
    out = text or ""

    remote_count = None
    remote_match = REMOTE_COUNT_PATTERN.search(out)
    if remote_match:
        remote_count = int(remote_match.group(1))

    local_count = None
    local_match = LOCAL_COUNT_PATTERN.search(out)
    if local_match and local_match.group(1).upper() != "N/A":
        local_count = int(local_match.group(1))

    return HealthReport(
        remote_count=remote_count,
        local_count=local_count,
        local_not_running=LOCAL_NOT_RUNNING_PATTERN.search(out) is not None,
    )
