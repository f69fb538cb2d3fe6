"""Short-lived SSH session bound to a VM."""

import logging
import shlex
import time

import paramiko
from paramiko.agent import AgentRequestHandler

from vmssh.core.errors import SSHBadExitStatus, SSHSessionClosed
from vmssh.core.types import CommandResult, VMHandle

logger = logging.getLogger(__name__)

READ_SIZE = 65536
POLL_INTERVAL = 0.1


class Session:
    """Live SSH connection to a VM.

    A session is only valid inside the ``ConnectionManager.open`` call that
    created it. Once that call returns the underlying client is closed and
    every method raises ``SSHSessionClosed``.
    """

    def __init__(self, client: paramiko.SSHClient, vm: VMHandle) -> None:
        """Initialize session.

        Args:
            client: Connected paramiko client.
            vm: VM the client is connected to.
        """
        self._client = client
        self._vm = vm
        self._closed = False

    @property
    def vm(self) -> VMHandle:
        """Get the VM this session is bound to."""
        return self._vm

    @property
    def client(self) -> paramiko.SSHClient:
        """Get the underlying paramiko client."""
        self._check_open()
        return self._client

    @property
    def closed(self) -> bool:
        """Check if the session has been closed."""
        return self._closed

    def close(self) -> None:
        """Close the underlying connection."""
        if self._closed:
            return
        self._closed = True
        self._client.close()

    def exec(
        self,
        command: str,
        error_check: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command on the VM.

        Args:
            command: Command to execute.
            error_check: Raise if the command exits with a non-zero status.
            timeout: Seconds the command may run, None to wait for it.

        Returns:
            CommandResult with exit status and captured output.

        Raises:
            SSHBadExitStatus: If error_check is set and the command failed.
            TimeoutError: If the command did not exit within timeout.
        """
        self._check_open()
        logger.debug(f"Executing on {self._vm.name}: {command}")

        transport = self._client.get_transport()
        channel = transport.open_session(timeout=timeout)
        try:
            if self._vm.ssh.forward_agent:
                AgentRequestHandler(channel)
            if timeout is not None:
                channel.settimeout(timeout)
            channel.exec_command(command)
            stdout, stderr = _drain(channel, command, timeout)
            exit_status = channel.recv_exit_status()
        finally:
            channel.close()

        result = CommandResult(exit_status=exit_status, stdout=stdout, stderr=stderr)
        if error_check and exit_status != 0:
            raise SSHBadExitStatus(command, exit_status, result.output)
        return result

    def sudo(
        self,
        command: str,
        error_check: bool = True,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command on the VM as root.

        Args:
            command: Command to execute.
            error_check: Raise if the command exits with a non-zero status.
            timeout: Channel timeout in seconds.

        Returns:
            CommandResult with exit status and captured output.
        """
        return self.exec(
            f"sudo -H sh -c {shlex.quote(command)}",
            error_check=error_check,
            timeout=timeout,
        )

    def _check_open(self) -> None:
        if self._closed:
            raise SSHSessionClosed()


def _drain(
    channel: paramiko.Channel, command: str, timeout: float | None
) -> tuple[str, str]:
    """Read stdout and stderr together until the command exits.

    Both buffers are consumed as data arrives so neither stream can fill
    the channel window and stall the remote command.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    stdout = bytearray()
    stderr = bytearray()

    while True:
        if channel.recv_ready():
            stdout += channel.recv(READ_SIZE)
        if channel.recv_stderr_ready():
            stderr += channel.recv_stderr(READ_SIZE)

        pending = channel.recv_ready() or channel.recv_stderr_ready()
        if not pending and (channel.exit_status_ready() or channel.closed):
            break
        if deadline is not None and time.monotonic() >= deadline:
            raise TimeoutError(f"Command timed out after {timeout}s: {command}")
        if not pending:
            channel.status_event.wait(POLL_INTERVAL)

    return (
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )
