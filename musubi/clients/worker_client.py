"""HTTP client for the Todoist/Things sync worker.

The worker is a small JSON API exposing the Todoist inbox, a health document
and aggregate sync metrics. This client maps requests to responses and
nothing more: no retries, no caching.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..constants import HEALTH_PATH, INBOX_TASKS_PATH, METRICS_PATH
from ..models import HealthCheckResult, MetricsReport, WorkerHealth, WorkerTask
from ..utils.errors import RequestError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0  # seconds


class WorkerClient:
    """Client for the sync worker API.

    Every method except ``health_check`` raises ``RequestError`` when the
    worker answers with a non-success status. Transport failures surface as
    ``httpx`` exceptions.

    Usage:
        async with WorkerClient("https://worker.example.dev/") as worker:
            health = await worker.get_health()
            metrics = await worker.get_metrics(hours=168)
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        """Initialize the worker client.

        Args:
            base_url: Worker base URL; trailing slashes are ignored
            timeout: Per-request timeout in seconds
        """
        base_url = base_url.strip().rstrip("/")
        if not base_url:
            raise ValueError("Worker base URL must not be empty")

        self._base_url = base_url
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "WorkerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _get(
        self, what: str, path: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        """Issue a GET request and reject non-success statuses.

        Raises:
            RequestError: If the worker answers with a non-2xx status
        """
        url = f"{self._base_url}{path}"
        client = await self._get_client()
        response = await client.get(url, params=params)

        if not 200 <= response.status_code < 300:
            error = RequestError(what, response.status_code, response.reason_phrase, url=url)
            logger.warning(str(error))
            raise error

        return response

    async def get_inbox_tasks(self) -> list[WorkerTask]:
        """Fetch the Todoist inbox as seen by the worker.

        A body that is not JSON, or that has no ``tasks`` list, is treated as
        an empty inbox. Entries that do not look like tasks are skipped.

        Raises:
            RequestError: If the worker answers with a non-success status
        """
        response = await self._get("Worker", INBOX_TASKS_PATH)

        try:
            data = response.json()
        except ValueError:
            logger.warning("Worker returned a non-JSON task list, treating as empty")
            return []

        raw_tasks = data.get("tasks") if isinstance(data, dict) else None
        if not isinstance(raw_tasks, list):
            return []

        tasks: list[WorkerTask] = []
        for raw in raw_tasks:
            try:
                tasks.append(WorkerTask.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed task from worker: {e}")
        return tasks

    async def get_inbox_count(self) -> int:
        """Number of inbox tasks. Costs a full ``get_inbox_tasks`` request."""
        tasks = await self.get_inbox_tasks()
        return len(tasks)

    async def get_health(self) -> WorkerHealth:
        """Fetch the worker health document.

        Raises:
            RequestError: If the worker answers with a non-success status
        """
        response = await self._get("Health", HEALTH_PATH)
        return WorkerHealth.model_validate(response.json())

    async def health_check(self) -> HealthCheckResult:
        """Summarise worker health. Never raises."""
        try:
            health = await self.get_health()
        except Exception as e:
            return HealthCheckResult(ok=False, message=str(e) or "Unknown error")

        return HealthCheckResult(
            ok=health.ok,
            message=None if health.ok else "Health reported not ok",
        )

    async def get_metrics(self, hours: int = 24) -> MetricsReport:
        """Fetch aggregate sync metrics for the last ``hours`` hours.

        Raises:
            RequestError: If the worker answers with a non-success status
        """
        response = await self._get("Metrics", METRICS_PATH, params={"hours": str(hours)})
        return MetricsReport.model_validate(response.json())
