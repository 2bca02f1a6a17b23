from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ToolNotFound
from ..runner import CommandSpec, Executor, ProcessOutcome, SecretEnvironment, SubprocessExecutor
from ..ssh import SshTunnel, wrap_remote


@dataclass(frozen=True)
class ConnectionTarget:
    """Database endpoint a destination writes into."""

    host: str
    port: int
    database: str
    username: str
    password: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Port out of range: {self.port}")

    @classmethod
    def from_settings(cls, database_settings: dict[str, Any], default_port: int = 5432) -> ConnectionTarget:
        """Build a target from a Django ``DATABASES`` entry."""
        port = database_settings.get("PORT") or default_port
        try:
            port = int(port)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid port: {port!r}") from exc
        return cls(
            host=database_settings.get("HOST") or "localhost",
            port=port,
            database=database_settings.get("NAME", ""),
            username=database_settings.get("USER", ""),
            password=database_settings.get("PASSWORD", ""),
        )


class BaseDestination(ABC):
    """Base class for restore destinations.

    A destination is initialized once, optionally wiping the target, and then
    receives any number of independent ``write`` calls. Each call runs exactly
    one client process, locally or on ``tunnel`` when one is configured.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        *,
        wipe_database: bool = False,
        tunnel: SshTunnel | None = None,
        executor: Executor | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ):
        self.target = target
        self.wipe_database = wipe_database
        self.tunnel = tunnel
        self.executor: Executor = executor or SubprocessExecutor()
        self.which = which
        self.initialized = False

    @classmethod
    @abstractmethod
    def from_settings(
        cls,
        database_settings: dict[str, Any],
        destination_settings: dict[str, Any] | None = None,
    ) -> BaseDestination:
        """Build a destination from Django database settings."""

    @property
    @abstractmethod
    def tool(self) -> str:
        """Client executable that applies the payload."""

    @abstractmethod
    def initialize(self) -> None:
        """Check prerequisites and optionally reset the target."""

    @abstractmethod
    def write(self, data: bytes) -> ProcessOutcome:
        """Apply one complete payload to the target."""

    def _secrets(self) -> SecretEnvironment:
        return SecretEnvironment()

    def _require_tool(self) -> None:
        # The client runs remotely when tunnelled; only ssh must exist here.
        binary = self.tunnel.binary if self.tunnel is not None else self.tool
        if self.which(binary) is None:
            raise ToolNotFound(binary)

    def _prepare(self, spec: CommandSpec) -> CommandSpec:
        secrets = self._secrets()
        if self.tunnel is not None:
            return wrap_remote(spec, secrets, self.tunnel)
        return spec.with_secrets(secrets)

    def _run(self, spec: CommandSpec, stdin: bytes | None = None) -> ProcessOutcome:
        outcome = self.executor.run(self._prepare(spec), stdin)
        outcome.raise_for_status()
        return outcome
