"""Shared constants for the sync manager.

Contains the worker defaults, environment variable names and the names of the
sync scripts the orchestrator drives.
"""

from pathlib import Path

# Environment variable names
ENV_WORKER_URL = "TODOIST_THINGS_WORKER_URL"

# Default URLs
DEFAULT_WORKER_URL = "https://todoist-things-sync.thalys.workers.dev"

# Worker endpoints
INBOX_TASKS_PATH = "/obsidian/tasks"
HEALTH_PATH = "/health"
METRICS_PATH = "/metrics"

# Scripts, resolved relative to the configured scripts directory
DEFAULT_SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"
HEALTH_SCRIPT = "check-sync-health.sh"
SYNC_SCRIPT = "sync-three-way.sh"
DEDUPE_SCRIPT = "cleanup-duplicates.sh"

# Exit code the health script uses for "ran fine, but found warnings"
HEALTH_WARNING_EXIT_CODE = 1
