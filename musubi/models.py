"""Data model for platform status, sync results and worker payloads.

Local results produced by the orchestrator are plain dataclasses. Documents
returned by the sync worker are pydantic models so their optional fields are
explicit and validated at the HTTP boundary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

NOT_AVAILABLE = "n/a"


class Platform(str, Enum):
    """The three platforms reconciled by the sync manager."""

    REMOTE = "remote"  # Todoist, via the sync worker
    LOCAL = "local"  # Things desktop app
    NOTES = "notes"  # Obsidian vault


@dataclass
class PlatformStatus:
    """Observed state of one platform."""

    count: int = 0
    online: bool = False
    last_sync: str = NOT_AVAILABLE

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"count must be non-negative, got {self.count}")

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "online": self.online, "lastSync": self.last_sync}


@dataclass
class SyncStatus:
    """Status of every platform; all three entries are always present."""

    remote: PlatformStatus = field(default_factory=PlatformStatus)
    local: PlatformStatus = field(default_factory=PlatformStatus)
    notes: PlatformStatus = field(default_factory=PlatformStatus)

    def __getitem__(self, platform: Platform | str) -> PlatformStatus:
        return getattr(self, Platform(platform).value)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {p.value: self[p].to_dict() for p in Platform}


@dataclass(frozen=True)
class SyncResult:
    """Summary of a single three-way sync run."""

    synced: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    errors: tuple[str, ...] = ()


@dataclass
class HealthStatus:
    """Coarse health verdict from the health script."""

    is_healthy: bool
    issues: list[str] = field(default_factory=list)


@dataclass
class DuplicateCleanupResult:
    """Outcome of a duplicate cleanup run."""

    removed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class ScriptResult:
    """Captured outcome of a script invocation.

    Attributes:
        stdout: Standard output, verbatim
        stderr: Standard error, or the error message when the process failed
        exit_code: Process exit code (1 when the failure carried none)
        duration_ms: Wall-clock duration in milliseconds
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    duration_ms: int = 0

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be non-negative, got {self.duration_ms}")

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


# ---------------------------------------------------------------------------
# Sync worker payloads
# ---------------------------------------------------------------------------


class WorkerModel(BaseModel):
    """Base for worker documents: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WorkerTask(WorkerModel):
    """A task in the worker's inbox."""

    id: str
    content: str
    notes: str | None = None
    completed: bool | None = None
    priority: int | None = None
    due: str | None = None
    tags: list[str] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Todoist ids arrive as numbers from some endpoints."""
        return str(v) if isinstance(v, int) else v


class ComponentHealth(WorkerModel):
    """Health of one backing service of the worker."""

    ok: bool = False
    error: str | None = None


class TodoistHealth(ComponentHealth):
    """Todoist health, with the current inbox size."""

    inbox_count: int = Field(default=0, alias="inboxCount")

    @field_validator("inbox_count", mode="wrap")
    @classmethod
    def lenient_inbox_count(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> int:
        """A missing, malformed or negative count reads as an empty inbox."""
        if v is None:
            return 0
        try:
            return max(0, handler(v))
        except ValidationError:
            return 0


class WorkerHealth(WorkerModel):
    """Response of ``GET /health``.

    Only the document shape is strict. A bad ``time`` or inbox count must not
    cost the caller the rest of the health data.
    """

    ok: bool = False
    time: datetime | None = None
    todoist: TodoistHealth = Field(default_factory=TodoistHealth)
    kv: ComponentHealth = Field(default_factory=ComponentHealth)
    d1: ComponentHealth = Field(default_factory=ComponentHealth)

    @field_validator("time", mode="wrap")
    @classmethod
    def lenient_time(
        cls, v: Any, handler: ValidatorFunctionWrapHandler
    ) -> datetime | None:
        """Empty or unparseable timestamps become None."""
        if not v:
            return None
        try:
            return handler(v)
        except ValidationError:
            return None

    @field_validator("todoist", "kv", "d1", mode="before")
    @classmethod
    def null_component_is_default(cls, v: Any) -> Any:
        return {} if v is None else v


class HealthCheckResult(BaseModel):
    """Simplified health verdict from ``WorkerClient.health_check``."""

    ok: bool
    message: str | None = None


class SyncTypeStats(WorkerModel):
    count: int = 0


class PerformanceStats(WorkerModel):
    p50_duration: float = Field(default=0.0, alias="p50Duration")
    p90_duration: float = Field(default=0.0, alias="p90Duration")
    p99_duration: float = Field(default=0.0, alias="p99Duration")


class TaskStats(WorkerModel):
    total_processed: int = Field(default=0, alias="totalProcessed")
    created: int = 0
    updated: int = 0
    completed: int = 0
    errors: int = 0


class MetricsReport(WorkerModel):
    """Response of ``GET /metrics``: aggregate sync metrics for a time window.

    Unknown fields are kept so newer worker versions are not lossy.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    period: str | None = None
    total: int = 0
    total_syncs: int = Field(default=0, alias="totalSyncs")
    success_rate: float = Field(default=0.0, alias="successRate")
    average_duration: float = Field(default=0.0, alias="averageDuration")
    by_type: dict[str, SyncTypeStats] = Field(default_factory=dict, alias="byType")
    performance: PerformanceStats = Field(default_factory=PerformanceStats)
    task_stats: TaskStats = Field(default_factory=TaskStats, alias="taskStats")

    def success_percent(self) -> int:
        """Success rate as a whole percentage."""
        return round(self.success_rate * 100)

    def top_types(self, limit: int = 6) -> list[tuple[str, int]]:
        """Most frequent sync types, highest count first."""
        entries = sorted(
            ((name, stats.count) for name, stats in self.by_type.items()),
            key=lambda item: item[1],
            reverse=True,
        )
        return entries[:limit]
