"""
Exceptions raised by wpstack.

Every fatal condition derives from WpstackError; the CLI turns any of
them into exit code 1. Best-effort steps and firewall rule failures are
logged as warnings instead of raised.
"""

from typing import Optional, Sequence


class WpstackError(RuntimeError):
    """Base class for fatal provisioning errors."""

    pass


class ConfigError(WpstackError):
    """A required configuration value is missing, empty or malformed."""

    pass


class MissingToolError(WpstackError):
    """A command the run depends on is not installed."""

    pass


class UnsupportedPlatformError(WpstackError):
    """The host is not a platform wpstack knows how to provision."""

    pass


class ServiceError(WpstackError):
    """A service did not reach the active state."""

    def __init__(self, unit: str, message: Optional[str] = None):
        self.unit = unit
        super().__init__(message or f"Service {unit} is not active")


class ConfigTestError(WpstackError):
    """A rendered configuration failed the server's syntax check."""

    pass


class WpConfigError(WpstackError):
    """wp-config.php does not have the expected layout."""

    pass


class CommandError(WpstackError):
    """An external command exited non-zero."""

    def __init__(self, command: Sequence[str], exit_code: int, output: str = ""):
        self.command = list(command)
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            f"Command failed with exit code {exit_code}\n"
            f"Command: {' '.join(self.command)}\n"
            f"Output: {output.strip()}"
        )
