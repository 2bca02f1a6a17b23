from __future__ import annotations

import io
import signal
import subprocess
from contextlib import suppress
from threading import Thread
from typing import IO

PipeDrain = tuple[Thread, list[bytes]] | None

STDIN_CHUNK_SIZE = 65536


def start_pipe_drain(stream: IO[bytes] | None) -> PipeDrain:
    """Drain a pipe-like stream in the background to avoid pipe-buffer blocking.

    Returns ``None`` when ``stream`` is not a real IO stream (for example a test
    double), so callers can fall back to standard ``communicate()`` behavior.
    """
    if stream is None or not isinstance(stream, io.IOBase):
        return None

    chunks: list[bytes] = []

    def _reader() -> None:
        with suppress(OSError, ValueError):
            while True:
                chunk = stream.read(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        with suppress(OSError, ValueError):
            stream.close()

    thread = Thread(target=_reader, daemon=True)
    thread.start()
    return thread, chunks


def join_pipe_drain(drain: PipeDrain) -> bytes:
    """Join a running drain and return collected bytes."""
    if drain is None:
        return b""
    thread, chunks = drain
    thread.join()
    return b"".join(chunks)


def begin_stderr_drain(proc: subprocess.Popen[bytes]) -> PipeDrain:
    """Start draining ``proc.stderr`` and detach it from communicate() if possible."""
    drain = start_pipe_drain(proc.stderr)
    if drain is not None:
        proc.stderr = None
    return drain


def close_process_stdin(proc: subprocess.Popen[bytes]) -> None:
    """Close and detach ``proc.stdin`` so the child sees end-of-input."""
    if proc.stdin is None:
        return
    with suppress(OSError, ValueError):
        proc.stdin.close()
    proc.stdin = None


def feed_process_stdin(proc: subprocess.Popen[bytes], data: bytes) -> tuple[int, Exception | None]:
    """Write ``data`` to ``proc.stdin`` and always close it.

    Returns ``(written, error)``. A child that exits before reading everything
    (bad credentials, for example) surfaces here as a broken pipe; the error
    is returned rather than raised so the exit status stays authoritative.
    """
    if proc.stdin is None:
        return 0, None
    view = memoryview(data)
    written = 0
    error: Exception | None = None
    try:
        while written < len(view):
            chunk = view[written : written + STDIN_CHUNK_SIZE]
            proc.stdin.write(chunk)
            written += len(chunk)
        proc.stdin.flush()
    except (OSError, ValueError) as exc:
        error = exc
    close_process_stdin(proc)
    return written, error


def finish_process(
    proc: subprocess.Popen[bytes],
    *,
    stderr_drain: PipeDrain = None,
    timeout: float | None = None,
) -> tuple[bytes, bytes]:
    """Wait for process completion and return ``(stdout, stderr)`` bytes safely."""
    close_process_stdin(proc)
    stdout, stderr_pipe = proc.communicate(timeout=timeout)
    stderr = join_pipe_drain(stderr_drain) or stderr_pipe or b""
    return stdout or b"", stderr


def abort_process(proc: subprocess.Popen[bytes], *, stderr_drain: PipeDrain = None) -> None:
    """Close stdin, kill ``proc`` and reap it. Cleanup errors are ignored."""
    close_process_stdin(proc)
    with suppress(OSError):
        proc.kill()
    with suppress(OSError, ValueError):
        finish_process(proc, stderr_drain=stderr_drain)


def describe_returncode(returncode: int) -> str:
    """Render a Popen return code the way a shell reports it."""
    if returncode >= 0:
        return f"exit status: {returncode}"
    signum = -returncode
    try:
        name = signal.Signals(signum).name
    except ValueError:
        return f"signal: {signum}"
    return f"signal: {signum} ({name})"
