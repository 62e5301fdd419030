"""
How wpstack reaches the host it provisions.

A transport runs commands and reads/writes files. Resources never touch
subprocess or the filesystem themselves; they get a transport from the
executor they are added to.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from wpstack.errors import CommandError

Result = Tuple[str, int]


class Transport(ABC):
    """
    Command runner and file access for one host.

    Output is stdout and stderr combined; exit code 127 means the
    command does not exist.
    """

    @abstractmethod
    def run_shell(self, command: str) -> Result:
        """
        Run a shell command line.

        Only for commands that need shell syntax (environment
        assignments, pipes); everything else goes through run_command.
        """

    @abstractmethod
    def run_command(self, args: Sequence[str], input: Optional[str] = None) -> Result:
        """
        Run a command without a shell.

        Args:
            args: Program and arguments
            input: Text fed to stdin (e.g. SQL for the mysql client)
        """

    def check_command(self, args: Sequence[str], input: Optional[str] = None) -> str:
        """
        Run a command that must succeed.

        Returns:
            The command's output

        Raises:
            CommandError: on a non-zero exit
        """
        args = list(args)
        output, code = self.run_command(args, input=input)
        if code != 0:
            raise CommandError(args, code, output)
        return output

    @abstractmethod
    def write_file(self, path: str, content: bytes) -> None:
        pass

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Raises FileNotFoundError for a missing path."""

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def which(self, name: str) -> Optional[str]:
        """Absolute path of an executable, or None if it is not installed."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class NullTransport(Transport):
    """
    Placeholder transport of a resource that is not attached yet.

    Any use fails with an error saying the resource has to be added to
    an executor first.
    """

    def _unattached(self, method: str):
        raise RuntimeError(
            f"Cannot call {method}(): Transport not initialized. "
            "Add the resource to an Executor (or pass it to apply_resources) first."
        )

    def run_shell(self, command: str) -> Result:
        self._unattached("run_shell")

    def run_command(self, args: Sequence[str], input: Optional[str] = None) -> Result:
        self._unattached("run_command")

    def write_file(self, path: str, content: bytes) -> None:
        self._unattached("write_file")

    def read_file(self, path: str) -> bytes:
        self._unattached("read_file")

    def file_exists(self, path: str) -> bool:
        self._unattached("file_exists")

    def which(self, name: str) -> Optional[str]:
        self._unattached("which")

