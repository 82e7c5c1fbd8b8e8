"""Execution of the sync shell scripts.

``ScriptRunner.execute`` always reports the outcome as a ``ScriptResult``:
spawn errors, timeouts and non-zero exits are normalised into data rather than
raised. Callers decide what a non-zero ``exit_code`` means for them.
"""

import asyncio
import logging
import os
import subprocess
import time
from pathlib import Path

from ..constants import (
    DEFAULT_SCRIPTS_DIR,
    DEFAULT_WORKER_URL,
    ENV_WORKER_URL,
    HEALTH_SCRIPT,
    HEALTH_WARNING_EXIT_CODE,
)
from ..models import ScriptResult
from ..utils.errors import ProcessExecutionError

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_TIMEOUT = 300.0  # seconds

# Shell conventions for a command that could not be run
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


class ScriptRunner:
    """Runs named scripts from a configurable scripts directory.

    Usage:
        runner = ScriptRunner(Path("~/sync/scripts").expanduser())
        result = await runner.execute("check-sync-health.sh")
        if result.exit_code != 0:
            ...

        # Background trigger, nothing is awaited or captured
        runner.execute_detached("sync-three-way.sh")
    """

    def __init__(
        self,
        scripts_dir: Path | str | None = None,
        timeout: float = DEFAULT_SCRIPT_TIMEOUT,
        worker_url: str | None = None,
    ):
        """Initialize the runner.

        Args:
            scripts_dir: Directory holding the scripts (default: repo ``scripts/``)
            timeout: Seconds before a running script is killed
            worker_url: Worker URL exported to scripts as TODOIST_THINGS_WORKER_URL
        """
        self._scripts_dir = Path(scripts_dir) if scripts_dir else DEFAULT_SCRIPTS_DIR
        self.timeout = timeout
        self._worker_url = worker_url

    @property
    def scripts_dir(self) -> Path:
        return self._scripts_dir

    def set_scripts_directory(self, path: Path | str) -> None:
        self._scripts_dir = Path(path).expanduser()

    def set_worker_url(self, worker_url: str | None) -> None:
        self._worker_url = worker_url or None

    def resolve(self, name: str) -> Path:
        """Full path of a script in the scripts directory."""
        return self._scripts_dir / name

    def _build_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env[ENV_WORKER_URL] = (
            self._worker_url or os.environ.get(ENV_WORKER_URL) or DEFAULT_WORKER_URL
        )
        return env

    async def execute(self, name: str, args: list[str] | None = None) -> ScriptResult:
        """Run a script and wait for it to finish.

        Args:
            name: Script file name, relative to the scripts directory
            args: Arguments passed to the script

        Returns:
            ScriptResult; never raises for process failures
        """
        argv = [str(a) for a in args or []]
        start = time.monotonic()

        logger.info(f"Executing script: {name} {argv}")

        try:
            stdout, stderr = await self._run(name, argv)
        except ProcessExecutionError as e:
            duration_ms = _elapsed_ms(start)

            # The health script exits 1 when it only found warnings
            if name == HEALTH_SCRIPT and e.exit_code == HEALTH_WARNING_EXIT_CODE:
                logger.info(
                    f"Health check completed with warnings "
                    f"(exit code {e.exit_code}, {duration_ms}ms)"
                )
            else:
                logger.error(f"Script failed: {name}: {e}")

            return ScriptResult(
                stdout=e.stdout or "",
                stderr=e.stderr or str(e),
                exit_code=e.exit_code or 1,
                duration_ms=duration_ms,
            )

        result = ScriptResult(
            stdout=stdout, stderr=stderr, exit_code=0, duration_ms=_elapsed_ms(start)
        )
        logger.info(f"Script completed: {name} (exit code 0, {result.duration_ms}ms)")
        return result

    async def _run(self, name: str, argv: list[str]) -> tuple[str, str]:
        """Spawn the script and collect its output.

        Raises:
            ProcessExecutionError: On spawn failure, timeout or non-zero exit
        """
        script_path = self.resolve(name)
        try:
            process = await asyncio.create_subprocess_exec(
                str(script_path),
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._build_env(),
            )
        except OSError as e:
            exit_code = (
                EXIT_NOT_FOUND if isinstance(e, FileNotFoundError) else EXIT_NOT_EXECUTABLE
            )
            raise ProcessExecutionError(
                name, f"Failed to start {script_path}: {e}", exit_code=exit_code
            ) from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout,
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            # Negative signal number once killed; never 0 or 1
            raise ProcessExecutionError(
                name,
                f"Script {name} exceeded timeout of {self.timeout}s",
                exit_code=process.returncode,
            ) from None
        except asyncio.CancelledError:
            process.kill()
            raise

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if process.returncode != 0:
            raise ProcessExecutionError(
                name,
                f"Command failed with exit code {process.returncode}: {script_path}",
                exit_code=process.returncode,
                stdout=stdout,
                stderr=stderr,
            )

        return stdout, stderr

    def execute_detached(self, name: str, args: list[str] | None = None) -> None:
        """Start a script in the background and return immediately.

        The child runs in its own session with no captured output and is not
        tracked, so it neither blocks the caller nor keeps the interpreter
        alive. A failure to spawn is logged, not raised.
        """
        script_path = self.resolve(name)
        argv = [str(a) for a in args or []]

        logger.info(f"Executing detached script: {name} {argv}")

        try:
            subprocess.Popen(
                [str(script_path), *argv],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=self._build_env(),
                start_new_session=True,
            )
        except OSError as e:
            logger.error(f"Failed to start detached script {name}: {e}")


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))
