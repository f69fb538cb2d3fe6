"""vmssh - SSH access to guest virtual machines.

This package runs commands, uploads files, checks liveness and opens
interactive shells on VMs reached through forwarded ports.
"""

from vmssh.core.config import Config
from vmssh.core.errors import (
    SSHAuthenticationFailed,
    SSHBadExitStatus,
    SSHConnectionRefused,
    SSHKeyBadPermissions,
    SSHPortNotDetected,
    SSHSessionClosed,
    SSHUnavailable,
    SSHUnavailableWindows,
    VMSSHError,
)
from vmssh.core.types import (
    CommandResult,
    ConnectionConfig,
    ForwardedPort,
    NetworkAdapter,
    SshConfig,
    VMHandle,
)
from vmssh.ssh.client import SSH
from vmssh.ssh.session import Session

__version__ = "0.1.0"

__all__ = [
    # Core types
    "CommandResult",
    "Config",
    "ConnectionConfig",
    "ForwardedPort",
    "NetworkAdapter",
    "SshConfig",
    "VMHandle",
    # SSH access
    "SSH",
    "Session",
    # Errors
    "SSHAuthenticationFailed",
    "SSHBadExitStatus",
    "SSHConnectionRefused",
    "SSHKeyBadPermissions",
    "SSHPortNotDetected",
    "SSHSessionClosed",
    "SSHUnavailable",
    "SSHUnavailableWindows",
    "VMSSHError",
]
