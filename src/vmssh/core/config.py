"""Loading VM definitions from JSON files."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from vmssh.core.types import NetworkAdapter, SshConfig, VMHandle

DEFAULT_VM_NAME = "default"


class _VMEntry(BaseModel):
    """Settings of one VM as written in the file."""

    ssh: SshConfig
    network_adapters: list[NetworkAdapter] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class _ConfigDocument(BaseModel):
    vms: dict[str, _VMEntry] = Field(min_length=1)

    model_config = {"extra": "forbid"}


class Config:
    """VM definitions read from a JSON document.

    The document maps VM names to their settings::

        {"vms": {"default": {"ssh": {...}, "network_adapters": [...]}}}

    The whole document is validated on load. Relative private key paths
    resolve against ``root_path``, which defaults to the directory holding
    the file.
    """

    def __init__(self, vms: dict[str, VMHandle]) -> None:
        """Initialize configuration.

        Args:
            vms: VM handles by name.
        """
        self._vms = vms

    @classmethod
    def from_file(cls, config_path: Path, root_path: Path | None = None) -> "Config":
        """Load VM definitions from a JSON file.

        Args:
            config_path: Path to the configuration file.
            root_path: Directory relative key paths are resolved against.
                Defaults to the directory of config_path.

        Returns:
            Config instance.

        Raises:
            FileNotFoundError: If the file does not exist.
            pydantic.ValidationError: If the document is invalid.
        """
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data, root_path or config_path.parent)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path | None = None) -> "Config":
        """Create configuration from a parsed document.

        Args:
            data: Configuration dictionary.
            root_path: Directory relative key paths are resolved against.
                Defaults to the current working directory.

        Returns:
            Config instance.
        """
        document = _ConfigDocument.model_validate(data)
        root = {} if root_path is None else {"root_path": root_path}
        return cls(
            {
                name: VMHandle(
                    name=name,
                    ssh=entry.ssh,
                    network_adapters=entry.network_adapters,
                    **root,
                )
                for name, entry in document.vms.items()
            }
        )

    @property
    def names(self) -> list[str]:
        """Get the names of all defined VMs, in file order."""
        return list(self._vms)

    def vm(self, name: str = DEFAULT_VM_NAME) -> VMHandle:
        """Get the handle of a defined VM.

        Args:
            name: VM name.

        Returns:
            VMHandle instance.

        Raises:
            ValueError: If no VM with that name is defined.
        """
        try:
            return self._vms[name]
        except KeyError:
            raise ValueError(
                f"VM '{name}' is not defined (known: {', '.join(self._vms)})"
            ) from None
