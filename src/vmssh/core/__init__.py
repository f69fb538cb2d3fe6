"""Core layer for vmssh."""

from vmssh.core.config import Config
from vmssh.core.types import (
    CommandResult,
    ConnectionConfig,
    ForwardedPort,
    NetworkAdapter,
    SshConfig,
    VMHandle,
)

__all__ = [
    "CommandResult",
    "Config",
    "ConnectionConfig",
    "ForwardedPort",
    "NetworkAdapter",
    "SshConfig",
    "VMHandle",
]
