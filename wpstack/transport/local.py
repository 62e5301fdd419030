"""
Local transport - provision the machine wpstack runs on.
"""

import os
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from wpstack.transport.base import Result, Transport

SUDO = ["sudo", "-n"]


class LocalTransport(Transport):
    """
    Runs commands with subprocess on this host.

    With sudo=True (wpstack started by a non-root user) every command is
    prefixed with "sudo -n", so a missing sudo rule fails instead of
    hanging on a password prompt. Files are staged in a temp file and
    moved into place with sudo.
    """

    def __init__(self, sudo: bool = False):
        self.sudo = sudo

    def run_shell(self, command: str) -> Result:
        if self.sudo:
            command = " ".join(SUDO + ["sh", "-c", shlex.quote(command)])

        proc = subprocess.run(command, shell=True, capture_output=True, text=True)
        return proc.stdout + proc.stderr, proc.returncode

    def run_command(self, args: Sequence[str], input: Optional[str] = None) -> Result:
        args = (SUDO if self.sudo else []) + list(args)
        try:
            proc = subprocess.run(args, input=input, capture_output=True, text=True)
        except FileNotFoundError:
            return f"{args[0]}: command not found", 127
        return proc.stdout + proc.stderr, proc.returncode

    def write_file(self, path: str, content: bytes) -> None:
        if not self.sudo:
            Path(path).write_bytes(content)
            return

        fd, staged = tempfile.mkstemp(prefix="wpstack-", suffix=".tmp")
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        try:
            self.check_command(["mkdir", "-p", str(Path(path).parent)])
            self.check_command(["mv", staged, path])
            self.check_command(["chown", "root:root", path])
            self.check_command(["chmod", "644", path])
        finally:
            if os.path.exists(staged):
                os.unlink(staged)

    def read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def file_exists(self, path: str) -> bool:
        return Path(path).exists()

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)
