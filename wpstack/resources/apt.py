"""apt-get plumbing shared by the Package and Repository resources."""

from typing import List

from wpstack.core import Platform
from wpstack.errors import CommandError, UnsupportedPlatformError
from wpstack.transport import Transport

APT_DISTROS = ("ubuntu", "debian")
APT_ENV = "DEBIAN_FRONTEND=noninteractive"


def require_apt(platform: Platform) -> None:
    """
    Raises:
        UnsupportedPlatformError: the host has no apt
    """
    if platform.distro not in APT_DISTROS:
        raise UnsupportedPlatformError(f"Unsupported platform: {platform.distro}")


def apt_get(transport: Transport, *args: str) -> str:
    """
    Run apt-get non-interactively.

    Raises:
        CommandError: apt-get exited non-zero
    """
    cmd: List[str] = ["apt-get", *args]
    output, code = transport.run_shell(f"{APT_ENV} {' '.join(cmd)}")
    if code != 0:
        raise CommandError(cmd, code, output)
    return output
