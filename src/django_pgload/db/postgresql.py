from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..runner import CommandSpec, ProcessOutcome, SecretEnvironment, SubprocessExecutor, string_tuple
from ..ssh import SshTunnel
from .base import BaseDestination, ConnectionTarget
from .reset import reset_statement

logger = logging.getLogger(__name__)

DEFAULT_PSQL_FLAGS = ("--no-password", "--set", "ON_ERROR_STOP=1")


class PsqlDestination(BaseDestination):
    """PostgreSQL destination feeding SQL to ``psql``.

    The password reaches psql only through ``PGPASSWORD``, never as an
    argument. ``PGPASSWORD`` is always set (empty without a password) so a
    value inherited from the calling environment never reaches psql.
    ``flags`` default to never prompting for a password and to stopping
    (with a nonzero exit) on the first failing statement. A wipe needs a
    username to grant the recreated schema to.
    """

    def __init__(
        self,
        target: ConnectionTarget,
        *,
        binary: str = "psql",
        flags: Sequence[str] | str = DEFAULT_PSQL_FLAGS,
        **kwargs: Any,
    ):
        super().__init__(target, **kwargs)
        if self.wipe_database and not target.username:
            raise ValueError("Wiping the database requires a USER to grant the new schema to")
        self.binary = binary
        self.flags = string_tuple(flags, "PSQL_FLAGS")

    @property
    def tool(self) -> str:
        return self.binary

    @classmethod
    def from_settings(
        cls,
        database_settings: dict[str, Any],
        destination_settings: dict[str, Any] | None = None,
    ) -> PsqlDestination:
        """Build a destination from a ``DATABASES`` entry and pgload options.

        ``destination_settings`` uses the ``DJANGO_PGLOAD`` key names, with
        ``TUNNEL`` holding the tunnel dict for this database (if any).
        """
        options = destination_settings or {}
        tunnel_config = options.get("TUNNEL")
        tunnel = None
        if tunnel_config:
            tunnel = SshTunnel.from_dict(tunnel_config, default_binary=options.get("SSH_BINARY") or "ssh")
        return cls(
            ConnectionTarget.from_settings(database_settings),
            binary=options.get("PSQL_BINARY") or "psql",
            flags=options.get("PSQL_FLAGS", DEFAULT_PSQL_FLAGS),
            wipe_database=bool(options.get("WIPE_DATABASE", False)),
            tunnel=tunnel,
            executor=SubprocessExecutor(capture_stderr=bool(options.get("CAPTURE_STDERR", False))),
        )

    def _secrets(self) -> SecretEnvironment:
        return SecretEnvironment({"PGPASSWORD": self.target.password})

    def _connection_args(self) -> list[str]:
        return [
            "-h",
            self.target.host,
            "-p",
            str(self.target.port),
            "-d",
            self.target.database,
            "-U",
            self.target.username,
        ]

    def _command(self, *extra: str) -> CommandSpec:
        return CommandSpec(self.binary, (*self._connection_args(), *self.flags, *extra))

    def initialize(self) -> None:
        """Verify the tool is available and, if configured, reset the public schema.

        Without a tunnel the local ``psql`` is checked. With one, psql runs on
        the remote host, so the local ssh client is checked instead.
        """
        self._require_tool()
        if self.wipe_database:
            logger.info("Resetting schema 'public' of database '%s'", self.target.database)
            self._run(self._command("-c", reset_statement(self.target.username)))
        self.initialized = True

    def write(self, data: bytes) -> ProcessOutcome:
        """Pipe ``data`` into psql. No transaction is wrapped around it."""
        return self._run(self._command(), stdin=bytes(data))
