"""Run commands on a trusted host through the system ``ssh`` client.

A non-interactive ``ssh host command`` does not forward the local
environment, so variables the remote command needs (``PGPASSWORD``) are
exported inside the remote shell, scoped to that single invocation.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .runner import ENV_NAME_RE, CommandSpec, SecretEnvironment, string_tuple


@dataclass(frozen=True)
class SshTunnel:
    """Intermediate host that commands are executed on instead of locally."""

    host: str
    port: int = 22
    user: str = ""
    identity_file: str = ""
    options: tuple[str, ...] = ()
    local_forward: str = ""
    binary: str = "ssh"

    def __post_init__(self) -> None:
        if not self.host or self.host.startswith("-"):
            raise ValueError(f"Invalid SSH host: {self.host!r}")
        if self.user.startswith("-") or "@" in self.user:
            raise ValueError(f"Invalid SSH user: {self.user!r}")
        if not 1 <= int(self.port) <= 65535:
            raise ValueError(f"SSH port out of range: {self.port}")
        object.__setattr__(self, "options", string_tuple(self.options, "SSH OPTIONS"))

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host

    def ssh_args(self) -> list[str]:
        args = ["-p", str(self.port)]
        if self.identity_file:
            args += ["-i", self.identity_file]
        # Never fall back to an interactive password/passphrase prompt.
        args += ["-o", "BatchMode=yes"]
        for option in self.options:
            args += ["-o", option]
        if self.local_forward:
            args += ["-L", self.local_forward]
        return args

    @classmethod
    def from_dict(cls, config: Mapping[str, Any], default_binary: str = "ssh") -> SshTunnel:
        """Build a tunnel from the ``DJANGO_PGLOAD['TUNNELS']`` dict form."""
        return cls(
            host=str(config.get("HOST", "")),
            port=int(config.get("PORT") or 22),
            user=str(config.get("USER", "")),
            identity_file=str(config.get("IDENTITY_FILE", "")),
            options=config.get("OPTIONS", ()),
            local_forward=str(config.get("LOCAL_FORWARD", "")),
            binary=str(config.get("BINARY") or default_binary),
        )


def remote_command_line(spec: CommandSpec, secrets: Mapping[str, str] | None = None) -> str:
    """Render ``spec`` as one POSIX shell line, exporting env and secrets first."""
    exports = []
    for name, value in {**spec.env, **(secrets or {})}.items():
        if not ENV_NAME_RE.match(name):
            raise ValueError(f"Invalid environment variable name: {name!r}")
        exports.append(f"export {name}={shlex.quote(value)};")
    return " ".join([*exports, shlex.join(spec.argv())])


def wrap_remote(spec: CommandSpec, secrets: SecretEnvironment, tunnel: SshTunnel) -> CommandSpec:
    """Return a spec that runs ``spec`` on ``tunnel.host`` with ``secrets`` set."""
    remote = remote_command_line(spec, {**spec.secrets, **secrets})
    return CommandSpec(
        program=tunnel.binary,
        args=(*tunnel.ssh_args(), "--", tunnel.destination, remote),
        sensitive=(*spec.hidden_values(), *secrets.values()),
    )
