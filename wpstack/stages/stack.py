"""
Stack ensurer - bring web server, firewall, database server and PHP
runtime to the installed-and-running state.

Every component follows the same steps: install the package only if it
is absent, enable and start the unit, then verify that it is active.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from wpstack.config import Settings
from wpstack.constants import (
    MYSQL_SECURE_ANSWERS,
    PHP_FPM_SOCKET,
    PHP_FPM_UNIT,
    PHP_PACKAGES,
    PHP_PPA,
    PHP_PPA_PATTERN,
    PHP_VERSION,
    REPO_TOOLS,
)
from wpstack.core import Platform
from wpstack.core.executor import apply_resources
from wpstack.errors import ServiceError
from wpstack.logging import get_stack_logger
from wpstack.resources.exec import Exec
from wpstack.resources.firewall import Firewall
from wpstack.resources.pkg import Package
from wpstack.resources.repository import Repository
from wpstack.resources.service import Service
from wpstack.transport import Transport

logger = get_stack_logger(__name__)


@dataclass(frozen=True)
class ServiceDescriptor:
    """A system component: its packages and the unit that must be active."""

    name: str
    packages: List[str] = field(default_factory=list)
    unit: str = ""
    socket: Optional[str] = None


WEB_SERVER = ServiceDescriptor("Nginx", ["nginx"], "nginx")
DATABASE_SERVER = ServiceDescriptor("MySQL", ["mysql-server"], "mysql")
RUNTIME = ServiceDescriptor(f"PHP-FPM {PHP_VERSION}", PHP_PACKAGES, PHP_FPM_UNIT, PHP_FPM_SOCKET)

COMPONENTS = (WEB_SERVER, DATABASE_SERVER, RUNTIME)


def ensure_system_packages(transport: Transport, platform: Platform) -> None:
    """Refresh the package index and upgrade installed packages."""
    logger.step("Updating system packages (apt update && apt upgrade)")
    apply_resources(
        transport,
        platform,
        Repository("apt-update", action="update"),
        Repository("apt-upgrade", action="upgrade"),
    )
    logger.success("READY to go")


def ensure_component(
    component: ServiceDescriptor,
    transport: Transport,
    platform: Platform,
    update_cache: bool = False,
) -> Service:
    """
    Install, enable, start and verify one component.

    Raises:
        ServiceError: if the unit is not active afterwards
    """
    package = Package(component.packages, update_cache=update_cache)
    result = apply_resources(transport, platform, package)
    if package.id not in result.changed_resources:
        logger.success(f"{component.name} packages already present")

    service = Service(component.unit)
    apply_resources(transport, platform, service)
    service.verify(platform)
    return service


def ensure_web_server(transport: Transport, platform: Platform) -> Service:
    logger.step("Ensuring Nginx")
    return ensure_component(WEB_SERVER, transport, platform)


def ensure_firewall(settings: Settings, transport: Transport, platform: Platform) -> Firewall:
    """Install UFW and allow the web server through it."""
    logger.step("Checking UFW")
    apply_resources(transport, platform, Package("ufw"))

    firewall = Firewall("nginx", port=settings.be_port, profile=settings.ufw_profile)
    result = apply_resources(transport, platform, firewall)
    if firewall.id not in result.changed_resources:
        logger.success(f"UFW already allows Nginx/port {settings.be_port}; no changes needed")
    return firewall


def ensure_database_server(transport: Transport, platform: Platform) -> Service:
    """Install and start MySQL, then run the best-effort hardening."""
    logger.step("Ensuring MySQL")
    service = ensure_component(DATABASE_SERVER, transport, platform)

    logger.info("Running mysql_secure_installation (non-interactive)...")
    apply_resources(
        transport,
        platform,
        Exec(
            "mysql-secure-installation",
            command=["mysql_secure_installation"],
            input=MYSQL_SECURE_ANSWERS,
            ignore_errors=True,
        ),
    )
    logger.success("mysql_secure_installation attempted")
    return service


def ensure_runtime(transport: Transport, platform: Platform) -> Service:
    """Register the PHP source once and install PHP-FPM with extensions."""
    logger.step(f"Ensuring PHP {PHP_VERSION} (FPM + common extensions)")
    apply_resources(
        transport,
        platform,
        Package("repo-tools", packages=REPO_TOOLS),
        Repository("ondrej-php", ppa=PHP_PPA, detect=PHP_PPA_PATTERN),
    )

    service = ensure_component(RUNTIME, transport, platform, update_cache=True)

    _, code = transport.run_command(["test", "-S", RUNTIME.socket])
    if code != 0:
        logger.warning(
            f"{RUNTIME.unit} socket not at {RUNTIME.socket} (check pool config)"
        )
    return service


def stack_ready(transport: Transport) -> List[str]:
    """Units of the stack that are not active."""
    down = []
    for component in COMPONENTS:
        _, code = transport.run_command(["systemctl", "is-active", "--quiet", component.unit])
        if code != 0:
            down.append(component.unit)
    return down


def ensure_stack(settings: Settings, transport: Transport, platform: Platform) -> None:
    """
    Ensure the whole LEMP stack is installed and running.

    Raises:
        ServiceError: if any unit is down at the end
    """
    logger.step("Ensuring LEMP is ready")
    ensure_web_server(transport, platform)
    ensure_firewall(settings, transport, platform)
    ensure_database_server(transport, platform)
    ensure_runtime(transport, platform)

    down = stack_ready(transport)
    if down:
        raise ServiceError(", ".join(down), f"LEMP not fully ready, inactive: {', '.join(down)}")
    logger.success("LEMP IS READY")
