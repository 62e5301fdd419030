"""
wpstack CLI - provision a LEMP host and deploy WordPress.

Usage:
    wpstack                  - Run the whole pipeline using ./.env
    wpstack --env-file PATH  - Use another env file
    wpstack --version        - Show version
"""

import sys
import tarfile
from pathlib import Path

import click
import requests

from wpstack import __version__
from wpstack.config import load_settings
from wpstack.constants import ENV_FILE
from wpstack.core.resource import Platform
from wpstack.errors import WpstackError
from wpstack.logging import setup_logging
from wpstack.pipeline import run
from wpstack.stages.preflight import needs_sudo, require_tools
from wpstack.transport import LocalTransport


@click.command()
@click.option('--env-file', default=ENV_FILE, show_default=True,
              type=click.Path(dir_okay=False, path_type=Path),
              help='KEY=VALUE configuration file (created if missing)')
@click.option('--log-level', default='INFO', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Log verbosity')
@click.version_option(__version__, prog_name='wpstack')
def cli(env_file: Path, log_level: str):
    """
    Provision Nginx, UFW, MySQL and PHP-FPM on this host and deploy a
    fresh WordPress for the site described in the env file.

    Example:
        sudo wpstack
        wpstack --env-file /srv/blog/.env
    """
    setup_logging(log_level)

    try:
        local = LocalTransport()
        sudo = needs_sudo(local.which)
        require_tools(local.which)

        settings = load_settings(env_file)

        with LocalTransport(sudo=sudo) as transport:
            platform = Platform.detect(transport)
            run(settings, transport, platform)
    except (WpstackError, requests.RequestException, tarfile.TarError, OSError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    click.secho("\nDone!", fg="green")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
