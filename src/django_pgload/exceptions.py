from __future__ import annotations


class DjangoPgloadError(Exception):
    """Base exception for django-pgload."""


class DestinationError(DjangoPgloadError):
    """Raised when a destination connector fails."""


class ToolNotFound(DestinationError):
    """Raised when a required executable is not on the search path."""

    def __init__(self, binary: str):
        self.binary = binary
        super().__init__(f"Command '{binary}' not found. Ensure required database client tools are installed.")


class SpawnFailed(DestinationError):
    """Raised when the OS refuses to start a subprocess."""

    def __init__(self, program: str, exc: OSError):
        self.program = program
        self.errno = exc.errno
        super().__init__(f"Could not start '{program}': {exc.strerror or exc}")


class ProcessFailed(DestinationError):
    """Raised when a subprocess exits with a nonzero or abnormal status."""

    def __init__(
        self,
        cmd: list[str],
        returncode: int,
        status: str,
        stderr: str = "",
        stream_error: StreamWriteFailed | None = None,
    ):
        self.cmd = cmd
        self.returncode = returncode
        self.status = status
        self.stderr = stderr
        self.stream_error = stream_error
        message = f"command failed ({status}): {' '.join(cmd)}"
        if stream_error is not None:
            message += f"\n{stream_error}"
        super().__init__(f"{message}\n{stderr}".strip())


class StreamWriteFailed(DestinationError):
    """Writing the payload to a subprocess stdin failed.

    The runner records this on the outcome instead of raising it; the exit
    status of the process decides success.
    """

    def __init__(self, written: int, total: int, exc: BaseException):
        self.written = written
        self.total = total
        super().__init__(f"input stream closed early after {written} of {total} bytes: {exc}")


class DestinationNotFound(DjangoPgloadError):
    """Raised when no destination connector is found for a database engine."""

    def __init__(self, engine: str):
        self.engine = engine
        super().__init__(f"No destination connector found for engine: {engine}")
