"""Host platform capability checks."""

import platform


def is_windows() -> bool:
    """Check if running on Windows."""
    return platform.system() == "Windows"


def supports_file_modes() -> bool:
    """Check if the host filesystem has POSIX ownership and mode bits."""
    return not is_windows()
