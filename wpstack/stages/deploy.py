"""
Application deployer - fetch a fresh WordPress, configure it, and
replace the deployed site with it.

Deployment is wholesale: the target directory is emptied and refilled
on every run. There is no backup and no rollback.
"""

import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional

import requests

from wpstack.config import Settings
from wpstack.constants import (
    WEB_GROUP,
    WEB_USER,
    WORDPRESS_ARCHIVE_URL,
    WORDPRESS_SALT_URL,
)
from wpstack.errors import WpConfigError
from wpstack.logging import get_stack_logger
from wpstack.transport import Transport
from wpstack.wpconfig import render_config

logger = get_stack_logger(__name__)

CHUNK_SIZE = 1024 * 256


def fetch_release(url: str, scratch: Path) -> Path:
    """
    Download and extract the release archive into scratch.

    Returns:
        The archive's top-level directory
    """
    archive = scratch / "latest.tar.gz"
    logger.info(f"Downloading {url}")
    with requests.get(url, stream=True) as response:
        response.raise_for_status()
        with archive.open("wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                f.write(chunk)

    extract_dir = scratch / "release"
    extract_dir.mkdir()
    with tarfile.open(archive, "r:gz") as tar:
        tar.extractall(extract_dir, filter="data")
    archive.unlink()

    roots = [p for p in extract_dir.iterdir() if p.is_dir()]
    if len(roots) != 1:
        raise WpConfigError(f"Expected one top-level directory in {url}, found {len(roots)}")
    return roots[0]


def fetch_salts(url: str = WORDPRESS_SALT_URL) -> str:
    """Fetch a freshly generated key/salt block."""
    response = requests.get(url)
    response.raise_for_status()
    return response.text


def configure_release(root: Path, settings: Settings, salts: str) -> Path:
    """
    Write wp-config.php from the bundled sample.

    Returns:
        Path of the written wp-config.php
    """
    sample = root / "wp-config-sample.php"
    if not sample.exists():
        raise WpConfigError(f"{sample.name} missing from the release")

    config = root / "wp-config.php"
    shutil.copyfile(sample, config)
    config.write_text(
        render_config(
            config.read_text(),
            settings.database_name,
            settings.database_user,
            settings.database_password,
            salts,
        )
    )
    return config


def publish(
    transport: Transport,
    source: Path,
    target: str,
    owner: str = WEB_USER,
    group: str = WEB_GROUP,
) -> None:
    """Empty target, copy source into it and hand it to the web user."""
    for cmd in (
        ["mkdir", "-p", target],
        ["find", target, "-mindepth", "1", "-delete"],
        ["cp", "-a", f"{source}/.", target],
        ["chown", "-R", f"{owner}:{group}", target],
    ):
        transport.check_command(cmd)


def deploy_application(
    settings: Settings,
    transport: Transport,
    archive_url: str = WORDPRESS_ARCHIVE_URL,
    salt_url: str = WORDPRESS_SALT_URL,
    owner: str = WEB_USER,
    group: str = WEB_GROUP,
    scratch_parent: Optional[str] = None,
) -> str:
    """
    Fetch, configure and deploy a fresh WordPress for the site.

    Returns:
        The deployed directory
    """
    logger.step("Fetching fresh WordPress")
    scratch = Path(tempfile.mkdtemp(prefix="wpstack-", dir=scratch_parent))
    try:
        root = fetch_release(archive_url, scratch)
        configure_release(root, settings, fetch_salts(salt_url))

        logger.step(f"Deploying WordPress to {settings.site_root}")
        publish(transport, root, settings.site_root, owner=owner, group=group)
    finally:
        shutil.rmtree(scratch, ignore_errors=True)

    logger.success(f"WordPress deployed to {settings.site_root}")
    return settings.site_root
