from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Protocol

from .exceptions import ProcessFailed, SpawnFailed, StreamWriteFailed
from .process_utils import (
    abort_process,
    begin_stderr_drain,
    describe_returncode,
    feed_process_stdin,
    finish_process,
)

logger = logging.getLogger(__name__)

ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MASK = "********"


class SecretEnvironment(Mapping[str, str]):
    """Environment variables holding secrets (passwords, tokens).

    Kept apart from plain environment overrides so secret values can be masked
    wherever a command is displayed. ``repr`` never shows the values.
    """

    def __init__(self, values: Mapping[str, str] | None = None):
        self._values: dict[str, str] = {}
        for name, value in (values or {}).items():
            if not ENV_NAME_RE.match(name):
                raise ValueError(f"Invalid environment variable name: {name!r}")
            self._values[name] = str(value)

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        names = ", ".join(f"{name}={MASK}" for name in self._values)
        return f"SecretEnvironment({names})"

    def redact(self, text: str) -> str:
        """Mask every secret value occurring in ``text``."""
        return redact(text, self._values.values())


def string_tuple(value: object, name: str) -> tuple[str, ...]:
    """Normalize an argument-list setting. A lone string is one argument."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{name} must be a string or a list of strings, got {value!r}")
    return tuple(value)


def redact(text: str, values: Iterable[str]) -> str:
    # Longest first so a secret that contains another one is masked whole.
    for value in sorted((v for v in values if v), key=len, reverse=True):
        quoted = shlex.quote(value)
        if quoted != value:
            text = text.replace(quoted, MASK)
        text = text.replace(value, MASK)
    return text


@dataclass(frozen=True)
class CommandSpec:
    """A program invocation: argv, plain env overrides and secret env."""

    program: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    secrets: SecretEnvironment = field(default_factory=SecretEnvironment)
    sensitive: tuple[str, ...] = ()

    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def environment(self) -> dict[str, str]:
        """Ambient environment with overrides, then secrets, merged on top."""
        env = os.environ.copy()
        env.update(self.env)
        env.update(self.secrets)
        return env

    def with_secrets(self, secrets: SecretEnvironment) -> CommandSpec:
        """Return a copy that passes ``secrets`` through the local environment."""
        merged = SecretEnvironment({**self.secrets, **secrets})
        return replace(self, secrets=merged, sensitive=(*self.sensitive, *secrets.values()))

    def hidden_values(self) -> tuple[str, ...]:
        return (*self.sensitive, *self.secrets.values())

    def display_args(self) -> list[str]:
        return [redact(arg, self.hidden_values()) for arg in self.argv()]

    def display(self) -> str:
        """Shell-like rendering with secret values masked, safe to log."""
        return " ".join(self.display_args())


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of one process run."""

    args: list[str]
    returncode: int
    stderr: str = ""
    stream_error: StreamWriteFailed | None = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def status(self) -> str:
        return describe_returncode(self.returncode)

    @property
    def diagnostic(self) -> str:
        parts = [self.status]
        if self.stream_error is not None:
            parts.append(str(self.stream_error))
        if self.stderr:
            parts.append(self.stderr)
        return "\n".join(parts)

    def raise_for_status(self) -> None:
        if not self.succeeded:
            raise ProcessFailed(self.args, self.returncode, self.status, self.stderr, self.stream_error)


class Executor(Protocol):
    """Runs a :class:`CommandSpec`, optionally feeding bytes to its stdin."""

    def run(self, spec: CommandSpec, stdin: bytes | None = None) -> ProcessOutcome: ...


class SubprocessExecutor:
    """Executor backed by :class:`subprocess.Popen`.

    stdout is discarded. stderr passes through to the caller unless
    ``capture_stderr`` is set, in which case it is drained in the background
    and returned on the outcome.
    """

    def __init__(self, capture_stderr: bool = False):
        self.capture_stderr = capture_stderr

    def run(self, spec: CommandSpec, stdin: bytes | None = None) -> ProcessOutcome:
        args = spec.display_args()
        logger.debug("Running %s", " ".join(args))
        try:
            proc = subprocess.Popen(
                spec.argv(),
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE if self.capture_stderr else None,
                env=spec.environment(),
            )
        except OSError as exc:
            raise SpawnFailed(spec.program, exc) from exc

        stderr_drain = begin_stderr_drain(proc) if self.capture_stderr else None
        stream_error = None
        try:
            if stdin is not None:
                written, exc = feed_process_stdin(proc, stdin)
                if exc is not None:
                    stream_error = StreamWriteFailed(written, len(stdin), exc)
                    logger.warning("%s: %s", spec.program, stream_error)

            _, stderr = finish_process(proc, stderr_drain=stderr_drain)
        except BaseException:
            # Ctrl-C included: the child must not outlive the call.
            logger.warning("%s interrupted, killing pid %s", spec.program, proc.pid)
            abort_process(proc, stderr_drain=stderr_drain)
            raise

        outcome = ProcessOutcome(
            args=args,
            returncode=proc.returncode,
            stderr=redact(stderr.decode(errors="replace").strip(), spec.hidden_values()),
            stream_error=stream_error,
        )
        logger.debug("%s finished with %s", spec.program, outcome.status)
        return outcome
