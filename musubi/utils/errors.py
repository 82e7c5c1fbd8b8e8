"""Error types for the sync manager."""


class MusubiError(Exception):
    """Base exception for sync manager errors."""

    pass


class RequestError(MusubiError):
    """Raised when the sync worker answers with a non-success HTTP status."""

    def __init__(
        self,
        what: str,
        status_code: int,
        reason: str = "",
        url: str | None = None,
    ):
        super().__init__(f"{what} request failed: {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason
        self.url = url


class ProcessExecutionError(MusubiError):
    """Raised when a sync script fails to run or exits non-zero."""

    def __init__(
        self,
        script: str,
        message: str,
        exit_code: int | None = None,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        super().__init__(message)
        self.script = script
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


# Configuration errors
class ConfigurationError(MusubiError):
    """Raised when configuration is missing, invalid or cannot be saved."""

    pass


class ConfigurationUnavailableError(ConfigurationError):
    """Raised when configuration is read before it has been loaded."""

    def __init__(self, action: str = "Call load() first"):
        super().__init__(f"Config not loaded. {action}")
