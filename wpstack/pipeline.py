"""
The provisioning pipeline.

Stages run in order and each one must fully succeed before the next
starts; the first error aborts the run.
"""

from wpstack.config import Settings
from wpstack.core import Platform
from wpstack.logging import get_stack_logger
from wpstack.stages.database import provision_database
from wpstack.stages.deploy import deploy_application
from wpstack.stages.site import configure_site
from wpstack.stages.stack import ensure_stack, ensure_system_packages
from wpstack.transport import Transport

logger = get_stack_logger(__name__)


def run(settings: Settings, transport: Transport, platform: Platform, **deploy_options) -> None:
    """
    Provision the host and deploy the site described by settings.

    Args:
        settings: Validated configuration
        transport: Transport to the host
        platform: Detected host platform
        **deploy_options: Passed to deploy_application (URLs, owner, group)
    """
    ensure_system_packages(transport, platform)
    ensure_stack(settings, transport, platform)
    provision_database(settings, transport, platform)
    configure_site(settings, transport, platform)
    deploy_application(settings, transport, **deploy_options)
    logger.success("DONE")
