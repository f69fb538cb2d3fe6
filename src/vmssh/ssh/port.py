"""Detection of the host port that reaches the guest SSH daemon."""

import logging

from vmssh.core.errors import SSHPortNotDetected
from vmssh.core.types import ForwardedPort, VMHandle

logger = logging.getLogger(__name__)


class PortResolver:
    """Resolves the SSH port of a VM."""

    def __init__(self, vm: VMHandle) -> None:
        self._vm = vm

    def resolve(self, override: int | None = None) -> int:
        """Resolve the SSH port.

        An explicit override wins, then the port set in the SSH
        configuration, then the forwarded port table. Within the table a
        forwarded port named after ``forwarded_port_key`` is preferred over
        one whose guest port is ``forwarded_port_destination``.

        Args:
            override: Port given for this call only.

        Returns:
            Host port number.

        Raises:
            SSHPortNotDetected: If no port could be determined.
        """
        if override is not None:
            return override

        if self._vm.ssh.port is not None:
            return self._vm.ssh.port

        by_name = self._find_by_name()
        if by_name is not None:
            return by_name.host_port

        by_destination = self._find_by_destination()
        if by_destination is not None:
            logger.debug(
                f"No forwarded port named {self._vm.ssh.forwarded_port_key!r}, "
                f"using guest port {by_destination.guest_port} mapping"
            )
            return by_destination.host_port

        raise SSHPortNotDetected()

    def _find_by_name(self) -> ForwardedPort | None:
        key = self._vm.ssh.forwarded_port_key
        for adapter in self._vm.network_adapters:
            for forwarded in adapter.forwarded_ports:
                if forwarded.name == key:
                    return forwarded
        return None

    def _find_by_destination(self) -> ForwardedPort | None:
        destination = self._vm.ssh.forwarded_port_destination
        for adapter in self._vm.network_adapters:
            for forwarded in adapter.forwarded_ports:
                if forwarded.guest_port == destination:
                    return forwarded
        return None
