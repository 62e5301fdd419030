"""
Firewall resource - open the web server to traffic through UFW.

UFW has no structured status interface, so state is read from the
documented text output of "ufw status" and "ufw app list".
"""

import re
from typing import Any, Dict, List, Optional

from wpstack.core import Plan, Platform, Resource
from wpstack.logging import get_stack_logger

logger = get_stack_logger(__name__)

NGINX_PROFILE_RULE = r"(Nginx (Full|HTTP|HTTPS)).*ALLOW"
STATUS_PREVIEW_LINES = 20


class Firewall(Resource):
    """
    Firewall resource allowing web traffic through UFW.

    If any existing rule already allows an Nginx profile, the forced
    profile or the port, nothing is changed. Otherwise the first
    available option wins:

    1. the forced profile (if UFW knows it)
    2. "Nginx Full"
    3. "Nginx HTTP" and/or "Nginx HTTPS"
    4. a raw "<port>/tcp" rule

    The firewall is switched on only when a rule was actually added.

    Examples:
        Firewall("nginx", port=8080)
        Firewall("nginx", port=8080, profile="Nginx HTTPS")
    """

    def __init__(
        self,
        name: str,
        port: int,
        protocol: str = "tcp",
        profile: Optional[str] = None,
        **options,
    ):
        """
        Initialize firewall resource.

        Args:
            name: Resource identifier
            port: Port to allow when no application profile is available
            protocol: Protocol of the raw port rule
            profile: Application profile to prefer over the defaults
            **options: Additional options
        """
        super().__init__(name, **options)

        self.port = port
        self.protocol = protocol
        self.profile = profile or None
        self.added: List[str] = []

    def resource_type(self) -> str:
        return "firewall"

    @property
    def port_rule(self) -> str:
        return f"{self.port}/{self.protocol}"

    def check(self, platform: Platform) -> Dict[str, Any]:
        """Check whether traffic is already allowed."""
        status = self._status()
        return {
            "exists": self._rule_present(status),
            "active": "Status: active" in status,
        }

    def desired_state(self) -> Dict[str, Any]:
        """A rule must allow the web server; activation follows from apply."""
        return {"exists": True}

    def apply(self, plan: Plan, platform: Platform) -> None:
        """Allow the best available rule and enable UFW if needed."""
        self.added = []

        for rule in self._candidates():
            output, code = self._transport.run_command(["ufw", "allow", rule])
            if code == 0:
                logger.info(f"Allowed UFW rule: {rule}")
                self.added.append(rule)
            else:
                logger.warning(f"Could not allow '{rule}': {output.strip()}")

        if self.added and "Status: inactive" in self._status():
            output, code = self._transport.run_command(["ufw", "--force", "enable"])
            if code != 0:
                logger.warning(f"Could not enable UFW (continuing): {output.strip()}")

        preview = "\n".join(self._status().split("\n")[:STATUS_PREVIEW_LINES])
        logger.info(f"UFW status:\n{preview}")

    def _candidates(self) -> List[str]:
        """Rules to try, in order of preference."""
        available = self.available_profiles()

        if self.profile and self.profile in available:
            return [self.profile]
        if "Nginx Full" in available:
            return ["Nginx Full"]

        split = [p for p in ("Nginx HTTP", "Nginx HTTPS") if p in available]
        if split:
            return split

        logger.info(f"No Nginx profiles available, allowing {self.port_rule} directly")
        return [self.port_rule]

    def available_profiles(self) -> List[str]:
        """Application profiles listed by "ufw app list"."""
        output, code = self._transport.run_command(["ufw", "app", "list"])
        if code != 0:
            return []
        # First line is the "Available applications:" header
        return [line.strip() for line in output.split("\n")[1:] if line.strip()]

    def _status(self) -> str:
        output, _ = self._transport.run_command(["ufw", "status"])
        return output

    def _rule_present(self, status: str) -> bool:
        patterns = [
            NGINX_PROFILE_RULE,
            rf"\b{self.port}/{self.protocol}\b\s+ALLOW",
        ]
        if self.profile:
            patterns.append(rf"{re.escape(self.profile)}\s+ALLOW")
        return any(re.search(p, status) for p in patterns)
