"""
Shared fixtures for wpstack tests.

MockTransport records every command and answers from scripted
responses, so resources can be exercised without touching the host.
"""

from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from wpstack.config import Settings
from wpstack.core import Platform
from wpstack.transport import Transport

Response = Union[Tuple[str, int], Callable[[list, Optional[str]], Tuple[str, int]]]


class MockTransport(Transport):
    """Mock transport for testing."""

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.commands: List[list] = []
        self.inputs: List[Optional[str]] = []
        self.shells: List[str] = []
        self.installed: set = set()
        self.active: set = set()
        self.enabled: set = set()
        self.tools: set = {"apt-get", "dpkg-query", "systemctl", "sudo"}
        self._responses: List[Tuple[tuple, Response]] = []

    def respond(self, prefix, response: Response) -> None:
        """Answer commands starting with prefix (longest prefix wins, then latest)."""
        self._responses.append((tuple(prefix), response))

    def ran(self, *prefix) -> List[list]:
        """Recorded commands starting with prefix."""
        return [cmd for cmd in self.commands if tuple(cmd[: len(prefix)]) == prefix]

    def file_exists(self, path):
        return path in self.files

    def read_file(self, path):
        if path in self.files:
            return self.files[path].encode("utf-8")
        raise FileNotFoundError(path)

    def write_file(self, path, content):
        self.files[path] = content.decode("utf-8") if isinstance(content, bytes) else content

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.tools else None

    def close(self):
        pass

    def run_shell(self, cmd):
        self.shells.append(cmd)
        if "apt-get install" in cmd:
            self.installed.update(cmd.split("apt-get install -y", 1)[1].split())
        return ("", 0)

    def run_command(self, cmd, input=None):
        cmd = list(cmd)
        self.commands.append(cmd)
        self.inputs.append(input)

        matches = [
            (prefix, response)
            for prefix, response in reversed(self._responses)
            if tuple(cmd[: len(prefix)]) == prefix
        ]
        if matches:
            _, response = max(matches, key=lambda m: len(m[0]))
            return response(cmd, input) if callable(response) else response

        return self._default(cmd)

    def _default(self, cmd):
        if cmd[:2] == ["dpkg-query", "-W"]:
            pkg = cmd[-1]
            if pkg in self.installed:
                return ("install ok installed", 0)
            return (f"dpkg-query: no packages found matching {pkg}", 1)

        if cmd[:2] == ["systemctl", "is-active"]:
            return ("", 0 if cmd[-1] in self.active else 3)
        if cmd[:2] == ["systemctl", "is-enabled"]:
            return ("", 0 if cmd[-1] in self.enabled else 1)
        if cmd[:3] == ["systemctl", "enable", "--now"]:
            self.active.add(cmd[-1])
            self.enabled.add(cmd[-1])
            return ("", 0)

        if cmd[0] == "stat":
            path = cmd[-1]
            kind = "directory" if path not in self.files else "regular file"
            return (f"{kind}|644|root|root", 0)
        if cmd[0] == "readlink":
            return ("", 1)

        return ("", 0)


@pytest.fixture
def transport():
    return MockTransport()


@pytest.fixture
def platform():
    return Platform(system="Linux", distro="ubuntu", version="24.04", arch="x86_64")


@pytest.fixture
def settings():
    return Settings(
        database_name="wp1",
        database_user="wpuser",
        database_password="secret",
        site_name="example",
        be_host="example.com",
        be_port=8080,
        fe_host="example.com",
        fe_port=443,
    )
