"""Pytest fixtures and configuration."""

import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator
from unittest.mock import MagicMock

import pytest

from vmssh.core.types import ForwardedPort, NetworkAdapter, SshConfig, VMHandle
from vmssh.ssh.keys import KeyPermissionGuard


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def key_path(temp_dir: Path) -> Path:
    """Create a private key file with mode 0600."""
    path = temp_dir / "private_key"
    path.write_text("fake_key", encoding="utf-8")
    path.chmod(0o600)
    return path


@pytest.fixture
def make_vm(temp_dir: Path, key_path: Path) -> Callable[..., VMHandle]:
    """Return a factory building VM handles with a forwarded SSH port."""

    def _make(adapters: list[NetworkAdapter] | None = None, **ssh: Any) -> VMHandle:
        if adapters is None:
            adapters = [
                NetworkAdapter(
                    forwarded_ports=[
                        ForwardedPort(name="ssh", guest_port=22, host_port=2222)
                    ]
                )
            ]
        ssh.setdefault("private_key_path", key_path.name)
        return VMHandle(
            name="test-vm",
            ssh=SshConfig(**ssh),
            network_adapters=adapters,
            root_path=temp_dir,
        )

    return _make


@pytest.fixture
def sample_vm(make_vm: Callable[..., VMHandle]) -> VMHandle:
    """Create a sample VM handle."""
    return make_vm(max_tries=3, timeout=5)


@pytest.fixture
def no_key_check() -> KeyPermissionGuard:
    """Key guard that skips permission checks."""
    return KeyPermissionGuard(check_modes=False)


class FakeChannel:
    """Channel of a command that writes all of stderr before any stdout.

    The command only exits once both streams were consumed, like a remote
    process blocked on a full channel window. Reads return small chunks.
    """

    def __init__(
        self, stdout: bytes = b"", stderr: bytes = b"", exit_status: int = 0, chunk: int = 1024
    ) -> None:
        self._stdout = bytearray(stdout)
        self._stderr = bytearray(stderr)
        self._exit_status = exit_status
        self._chunk = chunk
        self.closed = False
        self.status_event = MagicMock()
        self.exec_command = MagicMock()
        self.settimeout = MagicMock()
        self.close = MagicMock()

    def recv_stderr_ready(self) -> bool:
        return bool(self._stderr)

    def recv_ready(self) -> bool:
        return not self._stderr and bool(self._stdout)

    def recv_stderr(self, nbytes: int) -> bytes:
        return self._take(self._stderr, nbytes)

    def recv(self, nbytes: int) -> bytes:
        return self._take(self._stdout, nbytes)

    def exit_status_ready(self) -> bool:
        return not self._stderr and not self._stdout

    def recv_exit_status(self) -> int:
        assert self.exit_status_ready(), "command has not exited"
        return self._exit_status

    def _take(self, buffer: bytearray, nbytes: int) -> bytes:
        data = bytes(buffer[: min(nbytes, self._chunk)])
        del buffer[: len(data)]
        return data


@pytest.fixture
def command_client() -> Callable[..., MagicMock]:
    """Return a factory for paramiko clients whose commands use a FakeChannel."""

    def _make(stdout: bytes = b"", stderr: bytes = b"", exit_status: int = 0) -> MagicMock:
        client = MagicMock()
        client.get_transport.return_value.open_session.return_value = FakeChannel(
            stdout, stderr, exit_status
        )
        return client

    return _make
