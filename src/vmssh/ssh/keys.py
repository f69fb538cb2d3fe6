"""Private key permission checks."""

import logging
import os
import stat
from pathlib import Path

from vmssh.core.errors import SSHKeyBadPermissions
from vmssh.core.platform import supports_file_modes

logger = logging.getLogger(__name__)

REQUIRED_KEY_PERMS = "600"


def file_perms(path: Path) -> str:
    """Get the permission bits of a file as three octal digits.

    Args:
        path: File to inspect.

    Returns:
        Permission string such as ``"600"``.
    """
    return f"{stat.S_IMODE(os.stat(path).st_mode) & 0o777:03o}"


class KeyPermissionGuard:
    """Keeps a private key at mode 0600 so ssh does not reject it.

    OpenSSH refuses keys readable by other users. The check runs before
    every connection attempt.
    """

    def __init__(self, check_modes: bool | None = None) -> None:
        """Initialize the guard.

        Args:
            check_modes: Whether the host has POSIX ownership and modes.
                Detected from the platform if None.
        """
        self._check_modes = supports_file_modes() if check_modes is None else check_modes

    def ensure(self, key_path: Path) -> None:
        """Check the key permissions, repairing them if needed.

        Keys not owned by the current user are left untouched.

        Args:
            key_path: Path to the private key.

        Raises:
            SSHKeyBadPermissions: If the permissions cannot be set to 0600.
        """
        if not self._check_modes:
            return

        logger.info(f"Checking key permissions: {key_path}")

        try:
            key_stat = os.stat(key_path)
            if key_stat.st_uid != os.geteuid() or file_perms(key_path) == REQUIRED_KEY_PERMS:
                return

            logger.info("Attempting to correct key permissions to 0600")
            os.chmod(key_path, stat.S_IRUSR | stat.S_IWUSR)
            if file_perms(key_path) != REQUIRED_KEY_PERMS:
                raise SSHKeyBadPermissions(key_path)
        except PermissionError as e:
            raise SSHKeyBadPermissions(key_path) from e
