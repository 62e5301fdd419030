"""
Site configurator - render the Nginx server block, enable it, and
reload Nginx once the configuration passes "nginx -t".
"""

from pathlib import Path

from wpstack.config import Settings
from wpstack.constants import NGINX_SITES_AVAILABLE, NGINX_SITES_ENABLED, PHP_FPM_SOCKET
from wpstack.core import Platform
from wpstack.core.executor import Executor, apply_resources
from wpstack.logging import get_stack_logger
from wpstack.resources.file import File
from wpstack.resources.service import Service
from wpstack.transport import Transport

logger = get_stack_logger(__name__)

TEMPLATE = Path(__file__).resolve().parent.parent / "templates" / "nginx-site.conf.j2"


def server_block(settings: Settings, php_socket: str = PHP_FPM_SOCKET) -> File:
    """The server block file for the site."""
    return File(
        f"{NGINX_SITES_AVAILABLE}/{settings.site_name}",
        template=str(TEMPLATE),
        vars={
            "port": settings.be_port,
            "host": settings.be_host,
            "root": settings.site_root,
            "php_socket": php_socket,
        },
        mode=0o644,
    )


def configure_site(settings: Settings, transport: Transport, platform: Platform) -> File:
    """
    Write and activate the site's server block.

    Raises:
        ConfigTestError: nginx -t rejected the configuration; nothing reloaded
    """
    logger.step(f"Configuring Nginx server block for {settings.site_name}")

    available = server_block(settings)
    apply_resources(
        transport,
        platform,
        File(settings.site_root, ensure="directory"),
        available,
        File(
            f"{NGINX_SITES_ENABLED}/{settings.site_name}",
            ensure="link",
            target=available.path,
        ),
    )

    nginx = Executor(platform=platform, transport=transport).add(
        Service("nginx", validate=["nginx", "-t"])
    )
    nginx.reload(platform)

    logger.success(f"Nginx site '{settings.site_name}' enabled on port {settings.be_port}")
    return available
