"""Time-boxed SSH liveness check."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import paramiko

from vmssh.core.errors import SSHConnectionRefused
from vmssh.ssh.connection import ConnectionManager, is_transient
from vmssh.ssh.keys import KeyPermissionGuard
from vmssh.ssh.port import PortResolver
from vmssh.ssh.session import Session

logger = logging.getLogger(__name__)


class _ProbeAbandoned(Exception):
    """Raised in the probe worker once the caller stopped waiting."""


def _noop(session: Session) -> None:
    return None


class LivenessProbe:
    """Checks whether a VM answers on SSH within its configured timeout."""

    def __init__(
        self,
        connections: ConnectionManager,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
        key_guard: KeyPermissionGuard | None = None,
    ) -> None:
        """Initialize liveness probe.

        Args:
            connections: Connection manager of the VM.
            client_factory: Creates an unconnected paramiko client.
            key_guard: Key permission guard passed to probe connections.
        """
        self._connections = connections
        self._client_factory = client_factory
        self._key_guard = key_guard

    def is_up(self) -> bool:
        """Check if the VM is reachable over SSH.

        Returns:
            True if a connection could be established, False if the VM
            refused, dropped, or did not answer in time.

        Raises:
            SSHAuthenticationFailed: If the VM is reachable but rejected
                the private key.
        """
        vm = self._connections.vm
        # Resolved here since the VM model is not read from worker threads
        port = PortResolver(vm).resolve()
        timeout = vm.ssh.timeout

        opened: list[paramiko.SSHClient] = []
        abandoned = threading.Event()
        lock = threading.Lock()

        def tracked_client() -> paramiko.SSHClient:
            with lock:
                if abandoned.is_set():
                    raise _ProbeAbandoned()
                client = self._client_factory()
                opened.append(client)
            return client

        manager = ConnectionManager(
            vm, client_factory=tracked_client, key_guard=self._key_guard
        )
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="vmssh-probe")
        try:
            future = executor.submit(manager.open, _noop, port=port, timeout=timeout)
            future.result(timeout=timeout)
        except (FutureTimeoutError, TimeoutError):
            logger.warning(f"SSH to {vm.ssh.host}:{port} did not answer within {timeout}s")
            with lock:
                abandoned.set()
                for client in opened:
                    client.close()
            return False
        except SSHConnectionRefused:
            return False
        except Exception as e:
            if is_transient(e):
                return False
            raise
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return True
