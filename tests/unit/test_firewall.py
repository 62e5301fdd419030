"""
Unit tests for Firewall resource.

UFW answers are scripted as the text "ufw status" and "ufw app list" print.
"""

from wpstack.core.executor import Executor
from wpstack.resources.firewall import Firewall

INACTIVE = "Status: inactive\n"

ACTIVE_NGINX = """Status: active

To                         Action      From
--                         ------      ----
OpenSSH                    ALLOW       Anywhere
Nginx Full                 ALLOW       Anywhere
"""

ACTIVE_PORT = """Status: active

To                         Action      From
--                         ------      ----
8080/tcp                   ALLOW       Anywhere
"""


def app_list(*profiles):
    return ("Available applications:\n" + "".join(f"  {p}\n" for p in profiles), 0)


class UfwState:
    """Tracks rules added and activation so status reflects apply."""

    def __init__(self, transport, active=False, profiles=()):
        self.active = active
        self.rules = []
        transport.respond(["ufw", "status"], self.status)
        transport.respond(["ufw", "app", "list"], app_list(*profiles))
        transport.respond(["ufw", "allow"], self.allow)
        transport.respond(["ufw", "--force", "enable"], self.enable)

    def status(self, cmd, input):
        head = "Status: active\n" if self.active else "Status: inactive\n"
        return head + "".join(f"{rule:<27}ALLOW       Anywhere\n" for rule in self.rules), 0

    def allow(self, cmd, input):
        self.rules.append(cmd[-1])
        return "Rule added", 0

    def enable(self, cmd, input):
        self.active = True
        return "Firewall is active and enabled on system startup", 0


def run(firewall, transport, platform):
    executor = Executor(platform=platform, transport=transport)
    executor.add(firewall)
    return executor.run()


class TestFirewallDetection:
    """Unit tests for existing-rule detection."""

    def test_existing_nginx_profile(self, transport, platform):
        """Test that an allowed Nginx profile means no mutation."""
        transport.respond(["ufw", "status"], (ACTIVE_NGINX, 0))

        result = run(Firewall("nginx", port=8080), transport, platform)

        assert result.changed_resources == []
        assert transport.ran("ufw", "allow") == []
        assert transport.ran("ufw", "--force", "enable") == []

    def test_existing_port_rule(self, transport, platform):
        transport.respond(["ufw", "status"], (ACTIVE_PORT, 0))

        result = run(Firewall("nginx", port=8080), transport, platform)

        assert result.changed_resources == []

    def test_other_port_not_counted(self, transport, platform):
        """Test that 18080/tcp does not count as 8080/tcp."""
        transport.respond(["ufw", "status"], (ACTIVE_PORT.replace("8080", "18080"), 0))
        firewall = Firewall("nginx", port=8080)
        Executor(platform=platform, transport=transport).add(firewall)

        assert firewall.plan(platform).has_changes()

    def test_existing_forced_profile(self, transport, platform):
        status = "Status: active\n\nWordPress Web             ALLOW       Anywhere\n"
        transport.respond(["ufw", "status"], (status, 0))

        result = run(Firewall("nginx", port=8080, profile="WordPress Web"), transport, platform)

        assert result.changed_resources == []


class TestFirewallPrecedence:
    """Unit tests for the rule chosen when nothing is allowed yet."""

    def test_forced_profile_wins(self, transport, platform):
        ufw = UfwState(transport, profiles=("Nginx Full", "Nginx HTTPS", "WordPress Web"))
        firewall = Firewall("nginx", port=8080, profile="WordPress Web")

        run(firewall, transport, platform)

        assert ufw.rules == ["WordPress Web"]
        assert firewall.added == ["WordPress Web"]

    def test_unknown_forced_profile_falls_back(self, transport, platform):
        ufw = UfwState(transport, profiles=("Nginx Full",))

        run(Firewall("nginx", port=8080, profile="Missing"), transport, platform)

        assert ufw.rules == ["Nginx Full"]

    def test_split_profiles(self, transport, platform):
        """Test that HTTP and HTTPS are both allowed when Full is missing."""
        ufw = UfwState(transport, profiles=("Nginx HTTP", "Nginx HTTPS", "OpenSSH"))

        run(Firewall("nginx", port=8080), transport, platform)

        assert ufw.rules == ["Nginx HTTP", "Nginx HTTPS"]

    def test_raw_port_rule(self, transport, platform):
        ufw = UfwState(transport, profiles=("OpenSSH",))

        run(Firewall("nginx", port=8080), transport, platform)

        assert ufw.rules == ["8080/tcp"]


class TestFirewallActivation:
    """Unit tests for enabling UFW."""

    def test_enable_when_rule_added_and_inactive(self, transport, platform):
        ufw = UfwState(transport, active=False, profiles=("Nginx Full",))

        run(Firewall("nginx", port=8080), transport, platform)

        assert ufw.active
        assert transport.ran("ufw", "--force", "enable") == [["ufw", "--force", "enable"]]

    def test_already_active_not_reenabled(self, transport, platform):
        UfwState(transport, active=True, profiles=("Nginx Full",))

        run(Firewall("nginx", port=8080), transport, platform)

        assert transport.ran("ufw", "--force", "enable") == []

    def test_failed_allow_is_warning(self, transport, platform):
        """Test that a rejected rule neither raises nor enables UFW."""
        transport.respond(["ufw", "status"], (INACTIVE, 0))
        transport.respond(["ufw", "app", "list"], app_list("Nginx Full"))
        transport.respond(["ufw", "allow"], ("ERROR: Could not find a profile", 1))
        firewall = Firewall("nginx", port=8080)

        result = run(firewall, transport, platform)

        assert result.success
        assert firewall.added == []
        assert transport.ran("ufw", "--force", "enable") == []

    def test_failed_enable_is_warning(self, transport, platform):
        UfwState(transport, active=False, profiles=("Nginx Full",))
        transport.respond(["ufw", "--force", "enable"], ("ERROR: problem running iptables", 1))

        result = run(Firewall("nginx", port=8080), transport, platform)

        assert result.success

    def test_second_run_is_noop(self, transport, platform):
        UfwState(transport, profiles=("Nginx Full",))
        run(Firewall("nginx", port=8080), transport, platform)
        allowed = len(transport.ran("ufw", "allow"))

        result = run(Firewall("nginx", port=8080), transport, platform)

        assert result.changed_resources == []
        assert len(transport.ran("ufw", "allow")) == allowed
