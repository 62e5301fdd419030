"""Checks that must pass before anything on the host is touched."""

import os
from typing import Callable, Iterable, Optional

from wpstack.constants import REQUIRED_TOOLS
from wpstack.errors import MissingToolError
from wpstack.logging import get_stack_logger

logger = get_stack_logger(__name__)


def needs_sudo(
    which: Callable[[str], Optional[str]],
    euid: Optional[int] = None,
) -> bool:
    """
    Decide whether commands must go through sudo.

    Raises:
        MissingToolError: not root and sudo is not installed
    """
    euid = os.geteuid() if euid is None else euid
    if euid == 0:
        return False
    if which("sudo") is None:
        raise MissingToolError("Not running as root and sudo is not installed")
    return True


def require_tools(
    which: Callable[[str], Optional[str]],
    tools: Iterable[str] = REQUIRED_TOOLS,
) -> None:
    """
    Fail fast on the first missing command.

    Raises:
        MissingToolError
    """
    for tool in tools:
        if which(tool) is None:
            raise MissingToolError(f"Missing command: {tool}")
        logger.debug(f"found {tool}")
