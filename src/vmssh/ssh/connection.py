"""SSH connection establishment with bounded retry."""

import errno
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import paramiko
from paramiko.ssh_exception import NoValidConnectionsError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_fixed

from vmssh.core.errors import SSHAuthenticationFailed, SSHConnectionRefused
from vmssh.core.types import ConnectionConfig, VMHandle
from vmssh.ssh.keys import KeyPermissionGuard
from vmssh.ssh.port import PortResolver
from vmssh.ssh.session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_ERRORS = (EOFError, ConnectionResetError, ConnectionAbortedError)

# Messages paramiko uses when the peer drops the connection mid-handshake
DISCONNECT_MESSAGES = ("Error reading SSH protocol banner", "No existing session")


class _IgnoreHostKeyPolicy(paramiko.MissingHostKeyPolicy):
    """Accept any host key without recording it."""

    def missing_host_key(self, client, hostname, key) -> None:
        return None


def is_connection_refused(exc: BaseException) -> bool:
    """Check if an exception means the connection was refused."""
    if isinstance(exc, ConnectionRefusedError):
        return True
    if isinstance(exc, NoValidConnectionsError):
        return bool(exc.errors) and all(
            error.errno == errno.ECONNREFUSED for error in exc.errors.values()
        )
    return False


def is_disconnect(exc: BaseException) -> bool:
    """Check if an exception means the peer dropped the connection."""
    if isinstance(exc, DISCONNECT_ERRORS):
        return True
    if isinstance(exc, paramiko.SSHException) and not isinstance(
        exc, paramiko.AuthenticationException
    ):
        return str(exc).startswith(DISCONNECT_MESSAGES)
    return False


def is_transient(exc: BaseException) -> bool:
    """Check if a connection failure is worth another attempt."""
    return is_connection_refused(exc) or is_disconnect(exc)


class ConnectionManager:
    """Opens one SSH connection per call.

    Connecting is retried up to ``max_tries`` times, but only while the
    guest refuses or drops the connection. Any other failure is raised on
    the first attempt.
    """

    def __init__(
        self,
        vm: VMHandle,
        client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
        key_guard: KeyPermissionGuard | None = None,
        retry_interval: float = 0,
    ) -> None:
        """Initialize connection manager.

        Args:
            vm: VM to connect to.
            client_factory: Creates an unconnected paramiko client.
            key_guard: Key permission guard. A default one if None.
            retry_interval: Seconds to wait between connection attempts.
        """
        self._vm = vm
        self._client_factory = client_factory
        self._key_guard = key_guard or KeyPermissionGuard()
        self._retry_interval = retry_interval
        self._resolver = PortResolver(vm)

    @property
    def vm(self) -> VMHandle:
        """Get the VM this manager connects to."""
        return self._vm

    def build_config(
        self,
        port: int | None = None,
        timeout: int | None = None,
        host: str | None = None,
        username: str | None = None,
        private_key_path: Path | None = None,
    ) -> ConnectionConfig:
        """Assemble connection parameters for one call.

        Args:
            port: Port override.
            timeout: Connect timeout override in seconds.
            host: Host override.
            username: Username override.
            private_key_path: Private key override.

        Returns:
            ConnectionConfig snapshot.
        """
        return ConnectionConfig(
            host=host or self._vm.ssh.host,
            user=username or self._vm.ssh.username,
            key_path=private_key_path or self._vm.private_key_path,
            port=self._resolver.resolve(port),
            timeout=timeout or self._vm.ssh.timeout,
        )

    def open(
        self,
        continuation: Callable[[Session], T] | None = None,
        **overrides: Any,
    ) -> T | None:
        """Connect to the VM and pass the session to a continuation.

        The connection is closed when the continuation returns or raises.

        Args:
            continuation: Called with the live session.
            **overrides: ``port``, ``timeout``, ``host``, ``username`` or
                ``private_key_path`` for this call.

        Returns:
            Whatever the continuation returns, or None without one.

        Raises:
            SSHConnectionRefused: If every attempt was refused or dropped.
            SSHAuthenticationFailed: If the VM rejected the private key.
        """
        config = self.build_config(**overrides)
        self._key_guard.ensure(config.key_path)

        logger.info(f"Connecting to SSH: {config.host} {config.port}")

        try:
            session = self._connect_with_retry(config)
        except paramiko.AuthenticationException as e:
            raise SSHAuthenticationFailed() from e
        except Exception as e:
            if is_transient(e):
                raise SSHConnectionRefused() from e
            raise

        try:
            if continuation is None:
                return None
            return continuation(session)
        except ConnectionRefusedError as e:
            raise SSHConnectionRefused() from e
        finally:
            session.close()

    def _connect_with_retry(self, config: ConnectionConfig) -> Session:
        for attempt in Retrying(
            stop=stop_after_attempt(self._vm.ssh.max_tries),
            retry=retry_if_exception(is_transient),
            wait=wait_fixed(self._retry_interval),
            reraise=True,
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.debug(
                        f"Retrying SSH connection to {config.host}:{config.port} "
                        f"(attempt {number}/{self._vm.ssh.max_tries})"
                    )
                return Session(self._connect(config), self._vm)

    def _connect(self, config: ConnectionConfig) -> paramiko.SSHClient:
        client = self._client_factory()
        client.set_missing_host_key_policy(_IgnoreHostKeyPolicy())
        try:
            client.connect(
                hostname=config.host,
                port=config.port,
                username=config.user,
                key_filename=[str(config.key_path)],
                look_for_keys=False,
                allow_agent=False,
                timeout=config.timeout,
                banner_timeout=config.timeout,
                auth_timeout=config.timeout,
            )
        except BaseException:
            client.close()
            raise
        return client
