"""Type definitions for vmssh."""

import os
from pathlib import Path

from pydantic import BaseModel, Field


class ForwardedPort(BaseModel):
    """A port forwarded from the host to the guest."""

    name: str
    guest_port: int
    host_port: int

    model_config = {"extra": "forbid", "frozen": True}


class NetworkAdapter(BaseModel):
    """Network adapter of a VM, as reported by the virtualization driver."""

    forwarded_ports: list[ForwardedPort] = Field(default_factory=list)

    model_config = {"extra": "forbid", "frozen": True}


class SshConfig(BaseModel):
    """SSH settings of a VM."""

    host: str = "localhost"
    username: str = "vagrant"
    private_key_path: Path
    port: int | None = None
    forwarded_port_key: str = "ssh"
    forwarded_port_destination: int = 22
    max_tries: int = Field(default=10, ge=1)
    timeout: int = Field(default=30, gt=0)
    forward_agent: bool = False
    forward_x11: bool = False

    model_config = {"extra": "forbid", "frozen": True}


class VMHandle(BaseModel):
    """Read-only view of a VM used to reach it over SSH."""

    name: str = "default"
    ssh: SshConfig
    network_adapters: list[NetworkAdapter] = Field(default_factory=list)
    root_path: Path = Field(default_factory=Path.cwd)

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def private_key_path(self) -> Path:
        """Get the private key path, resolved against the root path."""
        key_path = Path(os.path.expanduser(str(self.ssh.private_key_path)))
        root = Path(os.path.expanduser(str(self.root_path)))
        return Path(os.path.abspath(root / key_path))


class ConnectionConfig(BaseModel):
    """Connection parameters assembled for a single call."""

    host: str
    user: str
    key_path: Path
    port: int
    timeout: int

    model_config = {"extra": "forbid", "frozen": True}


class CommandResult(BaseModel):
    """Result of a remote command."""

    exit_status: int
    stdout: str = ""
    stderr: str = ""

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def output(self) -> str:
        """Get stdout and stderr joined together."""
        return self.stdout + self.stderr
