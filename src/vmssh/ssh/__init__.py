"""SSH communication layer for vmssh."""

from vmssh.ssh.client import SSH
from vmssh.ssh.connection import ConnectionManager
from vmssh.ssh.interactive import InteractiveLauncher
from vmssh.ssh.keys import KeyPermissionGuard
from vmssh.ssh.port import PortResolver
from vmssh.ssh.probe import LivenessProbe
from vmssh.ssh.session import Session
from vmssh.ssh.transfer import FileTransferer

__all__ = [
    "ConnectionManager",
    "FileTransferer",
    "InteractiveLauncher",
    "KeyPermissionGuard",
    "LivenessProbe",
    "PortResolver",
    "Session",
    "SSH",
]
