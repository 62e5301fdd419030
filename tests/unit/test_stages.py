"""
Unit tests for the preflight, stack and site stages.
"""

from dataclasses import replace

import pytest

from wpstack.constants import PHP_FPM_SOCKET, PHP_FPM_UNIT, PHP_PACKAGES
from wpstack.errors import ConfigTestError, MissingToolError, ServiceError
from wpstack.stages.preflight import needs_sudo, require_tools
from wpstack.stages.site import configure_site, server_block
from wpstack.stages.stack import (
    DATABASE_SERVER,
    WEB_SERVER,
    ensure_component,
    ensure_database_server,
    ensure_firewall,
    ensure_runtime,
    ensure_stack,
    stack_ready,
)


class TestPreflight:
    """Unit tests for preflight checks."""

    def test_root_needs_no_sudo(self, transport):
        transport.tools.discard("sudo")

        assert needs_sudo(transport.which, euid=0) is False

    def test_non_root_uses_sudo(self, transport):
        assert needs_sudo(transport.which, euid=1000) is True

    def test_non_root_without_sudo(self, transport):
        transport.tools.discard("sudo")

        with pytest.raises(MissingToolError, match="sudo"):
            needs_sudo(transport.which, euid=1000)

    def test_all_tools_present(self, transport):
        require_tools(transport.which)

    def test_first_missing_tool_reported(self, transport):
        transport.tools -= {"dpkg-query", "systemctl"}

        with pytest.raises(MissingToolError, match="Missing command: dpkg-query"):
            require_tools(transport.which)


class TestEnsureComponent:
    """Unit tests for install/enable/verify of one component."""

    def test_fresh_install(self, transport, platform):
        ensure_component(WEB_SERVER, transport, platform)

        assert any("apt-get install -y nginx" in cmd for cmd in transport.shells)
        assert ["systemctl", "enable", "--now", "nginx"] in transport.commands

    def test_already_installed_and_running(self, transport, platform):
        """Test that a converged component is neither installed nor restarted."""
        transport.installed.add("nginx")
        transport.active.add("nginx")
        transport.enabled.add("nginx")

        ensure_component(WEB_SERVER, transport, platform)

        assert transport.shells == []
        assert transport.ran("systemctl", "enable") == []
        assert transport.ran("systemctl", "start") == []

    def test_unit_fails_to_start(self, transport, platform):
        """Test that a unit still inactive after start aborts with its journal."""
        transport.installed.add("mysql-server")
        transport.respond(["systemctl", "enable", "--now"], ("Job for mysql.service failed", 0))

        with pytest.raises(ServiceError, match="mysql"):
            ensure_component(DATABASE_SERVER, transport, platform)

        assert transport.ran("journalctl", "-u", "mysql")


class TestEnsureFirewall:
    """Unit tests for the firewall stage."""

    def test_ufw_installed_before_status(self, transport, platform, settings):
        ensure_firewall(settings, transport, platform)

        install = next(i for i, cmd in enumerate(transport.shells) if "install -y ufw" in cmd)
        assert install == 0
        assert ["ufw", "allow", "8080/tcp"] in transport.commands

    def test_forced_profile_from_settings(self, transport, platform, settings):
        transport.installed.add("ufw")
        transport.respond(
            ["ufw", "app", "list"],
            ("Available applications:\n  Nginx Full\n  Nginx HTTPS\n", 0),
        )

        firewall = ensure_firewall(replace(settings, ufw_profile="Nginx HTTPS"), transport, platform)

        assert firewall.added == ["Nginx HTTPS"]


class TestEnsureDatabaseServer:
    """Unit tests for the MySQL stage."""

    def test_hardening_is_best_effort(self, transport, platform):
        transport.respond(["mysql_secure_installation"], ("Error: Access denied", 1))

        ensure_database_server(transport, platform)

        index = transport.commands.index(["mysql_secure_installation"])
        assert transport.inputs[index] == "n\ny\ny\ny\ny\ny\n"


class TestEnsureRuntime:
    """Unit tests for the PHP stage."""

    def test_ppa_then_packages(self, transport, platform):
        ensure_runtime(transport, platform)

        assert transport.ran("add-apt-repository") == [["add-apt-repository", "-y", "ppa:ondrej/php"]]
        assert PHP_PACKAGES[0] in transport.installed
        assert all(pkg in transport.installed for pkg in PHP_PACKAGES)
        assert PHP_FPM_UNIT in transport.active

    def test_ppa_present_not_readded(self, transport, platform):
        transport.files["/etc/apt/sources.list"] = (
            "deb https://ppa.launchpadcontent.net/ondrej/php/ubuntu noble main\n"
        )

        ensure_runtime(transport, platform)

        assert transport.ran("add-apt-repository") == []

    def test_missing_socket_is_warning(self, transport, platform):
        transport.respond(["test", "-S", PHP_FPM_SOCKET], ("", 1))

        ensure_runtime(transport, platform)


class TestEnsureStack:
    """Unit tests for the stack as a whole."""

    def test_ready(self, transport, platform, settings):
        ensure_stack(settings, transport, platform)

        assert stack_ready(transport) == []

    def test_unit_down_at_the_end(self, transport, platform, settings):
        """Test that the final readiness check catches a unit that died."""
        checks = {"count": 0}

        def php_flaps(cmd, input):
            checks["count"] += 1
            # Active for the per-component verify, gone by the final check
            return "", 0 if checks["count"] <= 3 else 3

        transport.respond(["systemctl", "is-active", "--quiet", PHP_FPM_UNIT], php_flaps)

        with pytest.raises(ServiceError, match=PHP_FPM_UNIT):
            ensure_stack(settings, transport, platform)


class TestConfigureSite:
    """Unit tests for the site stage."""

    def test_server_block_vars(self, settings):
        text = server_block(settings).render()

        assert "listen 8080;" in text
        assert "server_name example.com www.example.com;" in text
        assert "root /var/www/example;" in text
        assert f"fastcgi_pass unix:{PHP_FPM_SOCKET};" in text

    def test_write_link_and_reload(self, transport, platform, settings):
        configure_site(settings, transport, platform)

        assert "listen 8080;" in transport.files["/etc/nginx/sites-available/example"]
        assert ["mkdir", "-p", "/var/www/example"] in transport.commands
        assert [
            "ln", "-sfn", "/etc/nginx/sites-available/example", "/etc/nginx/sites-enabled/example",
        ] in transport.commands
        nginx_t = transport.commands.index(["nginx", "-t"])
        reload = transport.commands.index(["systemctl", "reload", "nginx"])
        assert nginx_t < reload

    def test_rerun_rewrites_nothing(self, transport, platform, settings):
        """Test that an unchanged server block is left alone but nginx is still reloaded."""
        configure_site(settings, transport, platform)
        written = dict(transport.files)
        transport.commands.clear()
        transport.respond(["readlink"], ("/etc/nginx/sites-available/example\n", 0))

        configure_site(settings, transport, platform)

        assert transport.files == written
        assert transport.ran("ln") == []
        assert transport.ran("systemctl", "reload") == [["systemctl", "reload", "nginx"]]

    def test_bad_config_not_reloaded(self, transport, platform, settings):
        transport.respond(["nginx", "-t"], ("nginx: [emerg] invalid port", 1))

        with pytest.raises(ConfigTestError, match="invalid port"):
            configure_site(settings, transport, platform)

        assert transport.ran("systemctl", "reload") == []
