"""
Package resource - apt packages that must be installed.
"""

from typing import Any, Dict, List, Optional, Union

from wpstack.core.resource import Plan, Platform, Resource
from wpstack.logging import get_stack_logger
from wpstack.resources.apt import apt_get, require_apt

logger = get_stack_logger(__name__)

INSTALLED = "install ok installed"


class Package(Resource):
    """
    One or more apt packages.

    Only the packages dpkg does not report as installed are passed to
    apt-get install. With update_cache=True the package index is
    refreshed first, but only when something is actually missing.

    Examples:
        Package("nginx")
        Package(["php8.4-fpm", "php8.4-mysql"], update_cache=True)
        Package("repo-tools", packages=["software-properties-common", "lsb-release"])
    """

    def __init__(
        self,
        name: Union[str, List[str]],
        packages: Optional[List[str]] = None,
        update_cache: bool = False,
        **options
    ):
        """
        Args:
            name: Package name, or a list of packages named after the first
            packages: Packages of a named group
            update_cache: apt-get update before installing
        """
        if isinstance(name, list):
            packages, name = name, (name[0] if name else "empty")
        super().__init__(name, **options)

        self.packages = list(packages) if packages else [name]
        self.update_cache = update_cache

    def resource_type(self) -> str:
        return "pkg"

    def check(self, platform: Platform) -> Dict[str, Any]:
        require_apt(platform)
        missing = [pkg for pkg in self.packages if not self.installed(pkg)]
        return {"exists": not missing, "missing": missing}

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True, "missing": []}

    def installed(self, pkg: str) -> bool:
        """Ask dpkg whether pkg is fully installed."""
        output, code = self._transport.run_command(["dpkg-query", "-W", "-f=${Status}", pkg])
        return code == 0 and output.strip().endswith(INSTALLED)

    def missing(self) -> List[str]:
        """Packages found missing by the last check."""
        return list(self._actual_state.get("missing", self.packages))

    def apply(self, plan: Plan, platform: Platform) -> None:
        require_apt(platform)
        missing = self.missing()
        if not missing:
            return

        if self.update_cache:
            logger.info("Refreshing package index (apt-get update)...")
            apt_get(self._transport, "update", "-y")

        logger.info(f"Installing {' '.join(missing)}...")
        apt_get(self._transport, "install", "-y", *missing)
