"""
WordPress on a LEMP host, driven from Python instead of the CLI.

Same pipeline as "sudo wpstack", but the site is served from /srv/www
and the run stops after the stack and database are in place when
--no-deploy is given.

Run as root:
    python examples/wordpress.py [--no-deploy]
"""
import sys
from pathlib import Path

from wpstack import Platform, load_settings, setup_logging
from wpstack.pipeline import run
from wpstack.stages.database import provision_database
from wpstack.stages.site import configure_site
from wpstack.stages.stack import ensure_stack, ensure_system_packages
from wpstack.transport import LocalTransport

setup_logging("INFO")

settings = load_settings(Path(".env"), www_root="/srv/www")
print(f"Provisioning {settings.site_name} into {settings.site_root}")

with LocalTransport() as transport:
    platform = Platform.detect(transport)

    if "--no-deploy" in sys.argv:
        ensure_system_packages(transport, platform)
        ensure_stack(settings, transport, platform)
        provision_database(settings, transport, platform)
        configure_site(settings, transport, platform)
    else:
        run(settings, transport, platform)
