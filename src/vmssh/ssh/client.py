"""SSH access to a VM: commands, uploads, liveness and interactive shells."""

from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import paramiko

from vmssh.core.types import VMHandle
from vmssh.ssh.connection import ConnectionManager
from vmssh.ssh.interactive import InteractiveLauncher
from vmssh.ssh.keys import KeyPermissionGuard
from vmssh.ssh.port import PortResolver
from vmssh.ssh.probe import LivenessProbe
from vmssh.ssh.session import Session
from vmssh.ssh.transfer import FileTransferer, UploadSource

T = TypeVar("T")


class SSH:
    """Manages SSH access to a single VM."""

    def __init__(
        self,
        vm: VMHandle,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
        key_guard: KeyPermissionGuard | None = None,
        retry_interval: float = 0,
    ) -> None:
        """Initialize SSH access.

        Args:
            vm: VM to connect to.
            client_factory: Creates an unconnected paramiko client.
            key_guard: Key permission guard. A default one if None.
            retry_interval: Seconds to wait between connection attempts.
        """
        self._vm = vm
        self._key_guard = key_guard or KeyPermissionGuard()
        self._connections = ConnectionManager(
            vm,
            client_factory=client_factory,
            key_guard=self._key_guard,
            retry_interval=retry_interval,
        )
        self._transferer = FileTransferer(self._connections)
        self._probe = LivenessProbe(
            self._connections,
            client_factory=client_factory,
            key_guard=self._key_guard,
        )
        self._launcher = InteractiveLauncher(vm, key_guard=self._key_guard)

    @property
    def vm(self) -> VMHandle:
        """Get the VM."""
        return self._vm

    @property
    def private_key_path(self) -> Path:
        """Get the resolved private key path."""
        return self._vm.private_key_path

    def port(self, port: int | None = None) -> int:
        """Get the SSH port of the VM.

        Args:
            port: Explicit port, returned as is when given.

        Returns:
            Host port reaching the guest SSH daemon.
        """
        return PortResolver(self._vm).resolve(port)

    def check_key_permissions(self, key_path: Path) -> None:
        """Check and repair the permissions of a private key."""
        self._key_guard.ensure(key_path)

    def execute(
        self,
        continuation: Callable[[Session], T] | None = None,
        **opts: Any,
    ) -> T | None:
        """Open a connection and run a continuation with the session.

        Args:
            continuation: Called with the live session.
            **opts: Connection overrides (``port``, ``timeout``, ``host``,
                ``username``, ``private_key_path``).

        Returns:
            Whatever the continuation returns.
        """
        return self._connections.open(continuation, **opts)

    def upload(self, source: UploadSource, destination: str) -> None:
        """Upload a local file or buffer to the VM."""
        self._transferer.upload(source, destination)

    def is_up(self) -> bool:
        """Check if the VM responds to SSH."""
        return self._probe.is_up()

    def connect(self, **opts: Any) -> NoReturn:
        """Replace the current process with an interactive ssh session.

        Args:
            **opts: ``port``, ``host``, ``username`` or ``private_key_path``.
        """
        self._launcher.launch(**opts)
