__version__ = "0.1.0"

from wpstack.core import Resource, Plan, Action, Platform
from wpstack.resources.file import File
from wpstack.resources.pkg import Package
from wpstack.resources.service import Service
from wpstack.resources.exec import Exec
from wpstack.resources.firewall import Firewall
from wpstack.resources.mysql import MySQLDatabase, MySQLUser
from wpstack.resources.repository import Repository
from wpstack.config import Settings, load_settings
from wpstack.logging import get_logger, get_stack_logger, setup_logging

"""
Foundations of wpstack:
    Resource is a unit of configuration that represents a desired state of the host.
    Plan is what a resource needs to change to reach that state.
    Action is a unit of work that can be performed on a resource.
    Settings is the validated site configuration loaded from the .env file.

The provisioning pipeline itself lives in wpstack.pipeline.
"""

__all__ = [
    "Resource",
    "Plan",
    "Action",
    "Platform",
    "File",
    "Package",
    "Service",
    "Exec",
    "Firewall",
    "MySQLDatabase",
    "MySQLUser",
    "Repository",
    "Settings",
    "load_settings",
    "get_logger",
    "get_stack_logger",
    "setup_logging",
]
