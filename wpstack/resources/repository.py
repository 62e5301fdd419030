"""
Repository resource - apt sources and the package index.

Three modes:
- add:     register a PPA unless some source file already points at it
- update:  refresh the package index when it is older than an hour
- upgrade: upgrade installed packages when apt lists any as upgradable
"""

import re
from typing import Any, Dict, List, Optional

from wpstack.core import Plan, Platform, Resource
from wpstack.logging import get_stack_logger
from wpstack.resources.apt import apt_get, require_apt

logger = get_stack_logger(__name__)

APT_SOURCES = "/etc/apt/sources.list"
APT_SOURCES_DIR = "/etc/apt/sources.list.d"
APT_UPDATE_STAMP = "/var/lib/apt/periodic/update-success-stamp"
APT_CACHE_MAX_AGE = 3600

ACTIONS = ("add", "update", "upgrade")


class Repository(Resource):
    """
    Examples:
        Repository("apt-update", action="update")
        Repository("apt-upgrade", action="upgrade")

        # Matches both one-line .list entries and deb822 .sources files
        Repository("ondrej-php",
                   ppa="ppa:ondrej/php",
                   detect=r"ondrej(/|-)php|ppa\\.launchpadcontent\\.net/ondrej/php")
    """

    def __init__(
        self,
        name: str,
        action: str = "add",
        ppa: Optional[str] = None,
        detect: Optional[str] = None,
        **options,
    ):
        """
        Args:
            name: Resource name
            action: "add", "update" or "upgrade"
            ppa: PPA to register (action="add")
            detect: Regex marking the PPA as already registered
                (defaults to the PPA's owner/name)
        """
        super().__init__(name, **options)

        self.action = action.lower()
        if self.action not in ACTIONS:
            raise ValueError(f"Invalid action '{self.action}'. Must be one of: {list(ACTIONS)}")
        if self.action == "add" and not ppa:
            raise ValueError("Repository 'add' action requires a ppa")

        self.ppa = ppa
        self.detect = detect or (re.escape(ppa.replace("ppa:", "")) if ppa else None)

    def resource_type(self) -> str:
        return "repository"

    def check(self, platform: Platform) -> Dict[str, Any]:
        require_apt(platform)
        if self.action == "update":
            return self._cache_state()
        if self.action == "upgrade":
            return self._upgrade_state()
        return self._source_state()

    def desired_state(self) -> Dict[str, Any]:
        if self.action == "update":
            return {"exists": True, "stale": False}
        if self.action == "upgrade":
            return {"exists": True, "upgradable": 0}
        return {"exists": True}

    def apply(self, plan: Plan, platform: Platform) -> None:
        if self.action == "update":
            logger.info("Updating package cache (apt)...")
            apt_get(self._transport, "update", "-y")
        elif self.action == "upgrade":
            logger.info("Upgrading packages (apt)...")
            apt_get(self._transport, "upgrade", "-y")
        else:
            logger.info(f"Adding repository '{self.ppa}'...")
            self._transport.check_command(["add-apt-repository", "-y", self.ppa])

    def _cache_state(self) -> Dict[str, Any]:
        """Age of the last successful apt-get update, from apt's stamp file."""
        if self._transport.file_exists(APT_UPDATE_STAMP):
            stamp, code = self._transport.run_command(["stat", "-c", "%Y", APT_UPDATE_STAMP])
            now, now_code = self._transport.run_command(["date", "+%s"])
            if code == 0 and now_code == 0:
                age = int(now.strip()) - int(stamp.strip())
                return {"exists": True, "stale": age > APT_CACHE_MAX_AGE, "age": age}
        return {"exists": True, "stale": True}

    def _upgrade_state(self) -> Dict[str, Any]:
        output, _ = self._transport.run_shell("apt list --upgradable 2>/dev/null | grep -v '^Listing'")
        return {"exists": True, "upgradable": len(output.strip().splitlines())}

    def _source_files(self) -> List[str]:
        """The main source list plus every .list and .sources file."""
        output, code = self._transport.run_command(
            ["find", APT_SOURCES_DIR, "-maxdepth", "1", "-type", "f",
             "(", "-name", "*.list", "-o", "-name", "*.sources", ")"]
        )
        found = sorted(line for line in output.splitlines() if line.strip()) if code == 0 else []
        return [APT_SOURCES] + found

    def _source_state(self) -> Dict[str, Any]:
        pattern = re.compile(self.detect)
        for path in self._source_files():
            if not self._transport.file_exists(path):
                continue
            if pattern.search(self._transport.read_file(path).decode("utf-8", errors="replace")):
                return {"exists": True, "source_file": path}
        return {"exists": False}
