"""
Exec resource - run a one-off command.

Commands are argument lists and never go through a shell. Answers for
interactive tools can be fed on stdin.
"""

from typing import Any, Dict, List, Optional

from wpstack.core import Plan, Platform, Resource
from wpstack.errors import CommandError
from wpstack.logging import get_stack_logger

logger = get_stack_logger(__name__)


class Exec(Resource):
    """
    A command run for its side effects.

    Without a guard the command runs on every apply. Guards:
    - creates: skip if this path exists
    - unless: skip if this command succeeds
    - only_if: skip unless this command succeeds

    Examples:
        Exec("extract", command=["tar", "-xzf", "/tmp/a.tgz", "-C", "/opt"],
             creates="/opt/a")

        # Best effort, answers fed on stdin
        Exec("mysql-hardening",
             command=["mysql_secure_installation"],
             input="n\\ny\\ny\\n",
             ignore_errors=True)
    """

    def __init__(
        self,
        name: str,
        command: List[str],
        input: Optional[str] = None,
        creates: Optional[str] = None,
        unless: Optional[List[str]] = None,
        only_if: Optional[List[str]] = None,
        ignore_errors: bool = False,
        **options,
    ):
        """
        Args:
            name: Resource name
            command: Program and arguments
            input: Text fed to the command's stdin
            creates: Path whose existence means the work is done
            unless: Command whose success means the work is done
            only_if: Command that must succeed for the work to be needed
            ignore_errors: Log a failure as a warning instead of raising
        """
        super().__init__(name, **options)

        self.command = list(command)
        self.input = input
        self.creates = creates
        self.unless = unless
        self.only_if = only_if
        self.ignore_errors = ignore_errors

    def resource_type(self) -> str:
        return "exec"

    def pending(self) -> bool:
        """Whether the guards leave anything to run."""
        if self.creates and self._transport.file_exists(self.creates):
            return False
        if self.unless and self._transport.run_command(self.unless)[1] == 0:
            return False
        if self.only_if and self._transport.run_command(self.only_if)[1] != 0:
            return False
        return True

    def check(self, platform: Platform) -> Dict[str, Any]:
        return {"exists": True, "pending": self.pending()}

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True, "pending": False}

    def apply(self, plan: Plan, platform: Platform) -> None:
        output, code = self._transport.run_command(self.command, input=self.input)
        if code == 0:
            return

        if self.ignore_errors:
            logger.warning(f"{self.name}: {' '.join(self.command)} exited {code} (ignored)")
            return
        raise CommandError(self.command, code, output)
