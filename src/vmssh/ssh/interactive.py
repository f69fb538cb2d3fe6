"""Hand-off of the terminal to the native ssh client."""

import logging
import os
import shlex
import shutil
from pathlib import Path
from typing import NoReturn

from vmssh.core.errors import SSHUnavailable, SSHUnavailableWindows
from vmssh.core.platform import is_windows
from vmssh.core.types import VMHandle
from vmssh.ssh.keys import KeyPermissionGuard
from vmssh.ssh.port import PortResolver

logger = logging.getLogger(__name__)

EXEC_FAILED_EXIT_STATUS = 127


def build_ssh_command(
    host: str,
    port: int,
    username: str,
    private_key_path: Path,
    forward_agent: bool = False,
    forward_x11: bool = False,
) -> list[str]:
    """Build the ssh command line for an interactive session.

    Args:
        host: Remote host address.
        port: SSH port.
        username: SSH username.
        private_key_path: Path to private key file.
        forward_agent: Forward the local SSH agent.
        forward_x11: Forward X11 connections.

    Returns:
        Command line as list.
    """
    cmd = [
        "ssh",
        "-p",
        str(port),
        "-o",
        "UserKnownHostsFile=/dev/null",
        "-o",
        "StrictHostKeyChecking=no",
        "-o",
        "IdentitiesOnly=yes",
        "-i",
        str(private_key_path),
        "-o",
        "LogLevel=ERROR",
    ]

    if forward_agent:
        cmd.extend(["-o", "ForwardAgent=yes"])

    if forward_x11:
        # Both are required so that no warnings are shown regarding X11
        cmd.extend(["-o", "ForwardX11=yes", "-o", "ForwardX11Trusted=yes"])

    cmd.append(f"{username}@{host}")
    return cmd


class InteractiveLauncher:
    """Replaces the current process with an interactive ssh session."""

    def __init__(self, vm: VMHandle, key_guard: KeyPermissionGuard | None = None) -> None:
        """Initialize interactive launcher.

        Args:
            vm: VM to connect to.
            key_guard: Key permission guard. A default one if None.
        """
        self._vm = vm
        self._key_guard = key_guard or KeyPermissionGuard()
        self._resolver = PortResolver(vm)

    def launch(
        self,
        port: int | None = None,
        host: str | None = None,
        username: str | None = None,
        private_key_path: Path | None = None,
    ) -> NoReturn:
        """Exec into ``ssh``. Never returns.

        Args:
            port: Port override.
            host: Host override.
            username: Username override.
            private_key_path: Private key override.

        Raises:
            SSHUnavailableWindows: If running on Windows.
            SSHUnavailable: If no ssh binary is on PATH.
        """
        key_path = private_key_path or self._vm.private_key_path
        resolved_port = self._resolver.resolve(port)

        if is_windows():
            raise SSHUnavailableWindows(key_path, resolved_port)

        if shutil.which("ssh") is None:
            raise SSHUnavailable()

        self._key_guard.ensure(key_path)

        cmd = build_ssh_command(
            host=host or self._vm.ssh.host,
            port=resolved_port,
            username=username or self._vm.ssh.username,
            private_key_path=key_path,
            forward_agent=self._vm.ssh.forward_agent,
            forward_x11=self._vm.ssh.forward_x11,
        )

        logger.info(f"Invoking SSH: {shlex.join(cmd)}")
        try:
            os.execvp(cmd[0], cmd)
        except OSError as e:
            logger.error(f"Failed to exec ssh: {e}")
            raise SystemExit(EXEC_FAILED_EXIT_STATUS) from e
