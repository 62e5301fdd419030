"""Database provisioner - the site's database and its user."""

from typing import Tuple

from wpstack.config import Settings
from wpstack.constants import DB_CHARSET, DB_COLLATION
from wpstack.core import Platform
from wpstack.core.executor import apply_resources
from wpstack.logging import get_stack_logger
from wpstack.resources.mysql import MySQLDatabase, MySQLUser
from wpstack.transport import Transport

logger = get_stack_logger(__name__)


def provision_database(
    settings: Settings,
    transport: Transport,
    platform: Platform,
) -> Tuple[MySQLDatabase, MySQLUser]:
    """
    Create the database if absent, create the user if absent, and
    re-assert the user's grant on every run.
    """
    logger.step("Ensuring MySQL database & user")

    database = MySQLDatabase(
        settings.database_name,
        charset=DB_CHARSET,
        collation=DB_COLLATION,
    )
    user = MySQLUser(
        settings.database_user,
        password=settings.database_password,
        database=settings.database_name,
    )
    result = apply_resources(transport, platform, database, user)

    if database.id in result.changed_resources:
        logger.success(f"Database '{settings.database_name}' created")
    else:
        logger.success(f"Database '{settings.database_name}' already exists")
    logger.success(f"User '{settings.database_user}' ensured & granted on {settings.database_name}")

    return database, user
