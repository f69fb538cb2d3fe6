"""Typed failures raised by vmssh."""

from pathlib import Path


class VMSSHError(Exception):
    """Base class for all vmssh errors."""


class SSHUnavailable(VMSSHError):
    """No native ssh client binary could be found."""

    def __init__(self) -> None:
        super().__init__(
            "`ssh` binary could not be found. Is an SSH client installed "
            "and on your PATH?"
        )


class SSHUnavailableWindows(VMSSHError):
    """The native ssh client cannot be used on Windows."""

    def __init__(self, key_path: Path, port: int) -> None:
        self.key_path = key_path
        self.port = port
        super().__init__(
            "`ssh` cannot be launched on Windows. Use an SSH client such as "
            f"PuTTY with host 127.0.0.1, port {port} and the private key "
            f"at {key_path}."
        )


class SSHKeyBadPermissions(VMSSHError):
    """The private key permissions could not be set to 0600."""

    def __init__(self, key_path: Path) -> None:
        self.key_path = key_path
        super().__init__(
            f"The private key at {key_path} must be mode 0600 and owned by "
            "the current user. Automatic repair failed; fix the permissions "
            "manually and try again."
        )


class SSHPortNotDetected(VMSSHError):
    """No SSH port could be determined for the VM."""

    def __init__(self) -> None:
        super().__init__(
            "The SSH port of the VM could not be detected. Set an explicit "
            "port or forward the guest SSH port."
        )


class SSHConnectionRefused(VMSSHError):
    """The SSH connection was refused or dropped on every attempt."""

    def __init__(self) -> None:
        super().__init__(
            "SSH connection was refused. The guest SSH daemon may not be "
            "running yet, or the forwarded port may be wrong."
        )


class SSHAuthenticationFailed(VMSSHError):
    """The guest rejected the configured private key."""

    def __init__(self) -> None:
        super().__init__(
            "SSH authentication failed. The host is reachable but rejected "
            "the configured username and private key."
        )


class SSHBadExitStatus(VMSSHError):
    """A remote command exited with a non-zero status."""

    def __init__(self, command: str, exit_status: int, output: str = "") -> None:
        self.command = command
        self.exit_status = exit_status
        self.output = output
        super().__init__(
            f"Command exited with status {exit_status}: {command}\n{output}".rstrip()
        )


class SSHSessionClosed(VMSSHError):
    """A session was used after its connection was closed."""

    def __init__(self) -> None:
        super().__init__("SSH session is closed and can no longer be used.")
