"""Tests for vmssh.ssh.port module."""

from collections.abc import Callable

import pytest

from vmssh.core.errors import SSHPortNotDetected
from vmssh.core.types import ForwardedPort, NetworkAdapter, VMHandle
from vmssh.ssh.port import PortResolver


def adapter(*ports: tuple[str, int, int]) -> NetworkAdapter:
    """Build an adapter from (name, guest_port, host_port) tuples."""
    return NetworkAdapter(
        forwarded_ports=[
            ForwardedPort(name=name, guest_port=guest, host_port=host)
            for name, guest, host in ports
        ]
    )


class TestPortResolver:
    """Tests for PortResolver class."""

    def test_single_named_port(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test the forwarded port named after the lookup key is used."""
        vm = make_vm([adapter(("ssh", 22, 2222))], forwarded_port_key="ssh")
        assert PortResolver(vm).resolve() == 2222

    def test_override_wins(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test an explicit override beats everything else."""
        vm = make_vm([adapter(("ssh", 22, 2222))], port=2200)
        assert PortResolver(vm).resolve(4444) == 4444

    def test_static_port_beats_discovery(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test a configured port beats forwarded port discovery."""
        vm = make_vm([adapter(("ssh", 22, 2222))], port=2200)
        assert PortResolver(vm).resolve() == 2200

    def test_name_match_in_later_adapter_wins(
        self, make_vm: Callable[..., VMHandle]
    ) -> None:
        """Test a name match beats an earlier adapter's destination match."""
        vm = make_vm(
            [
                adapter(("other", 22, 3333)),
                adapter(("ssh", 2022, 4444)),
            ]
        )
        assert PortResolver(vm).resolve() == 4444

    def test_first_name_match_wins(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test the first name match across adapters short-circuits."""
        vm = make_vm(
            [
                adapter(("web", 80, 8080)),
                adapter(("ssh", 22, 2222)),
                adapter(("ssh", 22, 2223)),
            ]
        )
        assert PortResolver(vm).resolve() == 2222

    def test_first_name_match_within_adapter(
        self, make_vm: Callable[..., VMHandle]
    ) -> None:
        """Test ports inside an adapter are scanned in order."""
        vm = make_vm([adapter(("ssh", 22, 2201), ("ssh", 22, 2202))])
        assert PortResolver(vm).resolve() == 2201

    def test_destination_fallback(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test the first destination match is used without a name match."""
        vm = make_vm(
            [
                adapter(("web", 80, 8080)),
                adapter(("guest-ssh", 22, 5555)),
                adapter(("guest-ssh2", 22, 6666)),
            ]
        )
        assert PortResolver(vm).resolve() == 5555

    def test_custom_destination(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test the configured destination is matched against guest ports."""
        vm = make_vm(
            [adapter(("a", 22, 2222), ("b", 2022, 7777))],
            forwarded_port_key="missing",
            forwarded_port_destination=2022,
        )
        assert PortResolver(vm).resolve() == 7777

    def test_not_detected(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test failure when no port matches."""
        vm = make_vm([adapter(("web", 80, 8080)), adapter()])
        with pytest.raises(SSHPortNotDetected):
            PortResolver(vm).resolve()

    def test_no_adapters(self, make_vm: Callable[..., VMHandle]) -> None:
        """Test failure when the VM has no adapters."""
        with pytest.raises(SSHPortNotDetected):
            PortResolver(make_vm([])).resolve()
