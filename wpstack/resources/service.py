"""
Service resource - systemd units that must be enabled and running.
"""

from typing import Any, Dict, List, Optional

from wpstack.core import Plan, Platform, Resource
from wpstack.errors import ConfigTestError, ServiceError
from wpstack.logging import get_stack_logger

logger = get_stack_logger(__name__)

JOURNAL_LINES = 50


class Service(Resource):
    """
    A systemd unit.

    Examples:
        Service("mysql")

        # "nginx -t" has to pass before every reload
        Service("nginx", validate=["nginx", "-t"])
    """

    def __init__(
        self,
        name: str,
        running: bool = True,
        enabled: bool = True,
        validate: Optional[List[str]] = None,
        **options,
    ):
        """
        Args:
            name: Unit name
            running: Unit should be active
            enabled: Unit should start at boot
            validate: Configuration check run before reload()
        """
        super().__init__(name, **options)

        self.unit = name
        self.running = running
        self.enabled = enabled
        self.validate = validate

    def resource_type(self) -> str:
        return "svc"

    def check(self, platform: Platform) -> Dict[str, Any]:
        return {"exists": True, "running": self.is_active(), "enabled": self.is_enabled()}

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True, "running": self.running, "enabled": self.enabled}

    def apply(self, plan: Plan, platform: Platform) -> None:
        wanted = {change.field: change.to_value for change in plan.changes}

        if wanted.get("running") and wanted.get("enabled"):
            self._systemctl("enable", "--now")
            return

        if "running" in wanted:
            self._systemctl("start" if wanted["running"] else "stop")
        if "enabled" in wanted:
            self._systemctl("enable" if wanted["enabled"] else "disable")

    def is_active(self) -> bool:
        return self._transport.run_command(["systemctl", "is-active", "--quiet", self.unit])[1] == 0

    def is_enabled(self) -> bool:
        return self._transport.run_command(["systemctl", "is-enabled", "--quiet", self.unit])[1] == 0

    def verify(self, platform: Platform) -> None:
        """
        Make sure the unit reached the active state.

        Raises:
            ServiceError: after logging the unit's recent journal
        """
        if self.is_active():
            logger.success(f"{self.unit} is running")
            return

        logger.error(f"{self.unit} failed to start")
        journal, code = self._transport.run_command(
            ["journalctl", "-u", self.unit, "--no-pager", "-n", str(JOURNAL_LINES)]
        )
        if code == 0:
            logger.error(journal.rstrip())
        raise ServiceError(self.unit)

    def reload(self, platform: Platform) -> None:
        """
        Reload the unit's configuration.

        Raises:
            ConfigTestError: validate failed; the unit keeps its old configuration
        """
        if self.validate:
            output, code = self._transport.run_command(self.validate)
            if code != 0:
                raise ConfigTestError(
                    f"{' '.join(self.validate)} failed, not reloading {self.unit}:\n{output.strip()}"
                )
        self._systemctl("reload")

    def _systemctl(self, *args: str) -> None:
        self._transport.check_command(["systemctl", *args, self.unit])
