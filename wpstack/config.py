"""
Environment loader - read, complete and validate the .env file.

The .env file is a flat list of KEY=VALUE lines. Comments, blank lines
and anything that is not a well-formed assignment are ignored (and left
untouched in the file). Required keys that are missing or empty are
prompted for and written back.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

import click
from dotenv import dotenv_values, set_key

from wpstack.constants import WWW_ROOT
from wpstack.errors import ConfigError
from wpstack.logging import get_stack_logger

logger = get_stack_logger(__name__)

REQUIRED_KEYS = (
    "DATABASE_NAME",
    "DATABASE_USER",
    "DATABASE_PASSWORD",
    "SITE_NAME",
    "BE_HOST",
    "BE_PORT",
    "FE_HOST",
    "FE_PORT",
)
SECRET_KEYS = frozenset({"DATABASE_PASSWORD"})
PORT_KEYS = ("BE_PORT", "FE_PORT")
OPTIONAL_KEYS = ("UFW_PROFILE",)

KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
SITE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
MASK = "********"


@dataclass(frozen=True)
class Settings:
    """Validated site configuration, passed explicitly to every stage."""

    database_name: str
    database_user: str
    database_password: str
    site_name: str
    be_host: str
    be_port: int
    fe_host: str
    fe_port: int
    ufw_profile: Optional[str] = None
    www_root: str = WWW_ROOT

    @property
    def site_root(self) -> str:
        """Directory the site is served from and deployed into."""
        return f"{self.www_root.rstrip('/')}/{self.site_name}"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Optional[str]], **overrides) -> "Settings":
        """Build settings from validated KEY=VALUE pairs."""
        validate(values)
        return cls(
            database_name=values["DATABASE_NAME"],
            database_user=values["DATABASE_USER"],
            database_password=values["DATABASE_PASSWORD"],
            site_name=values["SITE_NAME"],
            be_host=values["BE_HOST"],
            be_port=int(values["BE_PORT"]),
            fe_host=values["FE_HOST"],
            fe_port=int(values["FE_PORT"]),
            ufw_profile=values.get("UFW_PROFILE") or None,
            **overrides,
        )

    def as_env(self) -> Dict[str, str]:
        """The settings as the .env keys they came from."""
        env = {
            "DATABASE_NAME": self.database_name,
            "DATABASE_USER": self.database_user,
            "DATABASE_PASSWORD": self.database_password,
            "SITE_NAME": self.site_name,
            "BE_HOST": self.be_host,
            "BE_PORT": str(self.be_port),
            "FE_HOST": self.fe_host,
            "FE_PORT": str(self.fe_port),
        }
        if self.ufw_profile:
            env["UFW_PROFILE"] = self.ufw_profile
        return env

    def describe(self) -> List[str]:
        """KEY=VALUE lines for display, secrets masked."""
        env = self.as_env()
        return [
            f"{key}={MASK if key in SECRET_KEYS else env[key]}"
            for key in REQUIRED_KEYS
        ]


def parse_env_file(path: Path) -> Dict[str, str]:
    """
    Read well-formed KEY=VALUE pairs from an env file.

    Lines without "=" and keys that are not identifiers are dropped.
    Surrounding quotes are stripped; no variable interpolation happens.
    """
    if not path.exists():
        return {}

    values = dotenv_values(path, interpolate=False)
    return {
        key: value
        for key, value in values.items()
        if value is not None and KEY_PATTERN.match(key)
    }


def missing_keys(values: Mapping[str, Optional[str]]) -> List[str]:
    """Required keys that are absent or empty."""
    return [key for key in REQUIRED_KEYS if not (values.get(key) or "").strip()]


def validate(values: Mapping[str, Optional[str]]) -> None:
    """
    Validate required keys.

    Raises:
        ConfigError: listing every missing/empty key, or a malformed value
    """
    missing = missing_keys(values)
    if missing:
        raise ConfigError(f"Required values missing or empty: {', '.join(missing)}")

    for key in PORT_KEYS:
        raw = values[key].strip()
        if not raw.isdigit() or not 0 < int(raw) < 65536:
            raise ConfigError(f"{key} must be a port number (1-65535), got {raw!r}")

    if not SITE_NAME_PATTERN.match(values["SITE_NAME"]):
        raise ConfigError(
            f"SITE_NAME must be a plain directory name, got {values['SITE_NAME']!r}"
        )


def prompt_value(key: str, prompt: Callable[..., str] = click.prompt) -> str:
    """
    Ask for one value, hiding input for secrets.

    Raises:
        ConfigError: if the answer is empty
    """
    value = prompt(
        f"Value for {key}",
        default="",
        show_default=False,
        hide_input=key in SECRET_KEYS,
    )
    if not value or not value.strip():
        raise ConfigError(f"{key} cannot be empty")
    return value


def write_value(path: Path, key: str, value: str) -> None:
    """Update KEY in place if present, append it otherwise."""
    set_key(path, key, value, quote_mode="auto")


def load_settings(
    path: Path,
    prompt: Callable[..., str] = click.prompt,
    **overrides,
) -> Settings:
    """
    Produce validated settings from the env file, prompting for gaps.

    Args:
        path: Env file location (created if absent)
        prompt: Prompt function (click.prompt signature)
        **overrides: Extra Settings fields (e.g. www_root)

    Returns:
        Settings

    Raises:
        ConfigError: on an empty answer or an invalid value
    """
    logger.step(f"Checking {path}")
    path = Path(path)

    if not path.exists():
        logger.warning(f"No {path} found; creating.")
        path.touch(mode=0o600)

    values = parse_env_file(path)
    missing = missing_keys(values)

    if missing:
        logger.info("Some required variables are missing, please provide:")
        for key in missing:
            value = prompt_value(key, prompt)
            write_value(path, key, value)
            values[key] = value

    settings = Settings.from_mapping(values, **overrides)

    logger.info("Confirming .env values:\n" + "\n".join(f"  {line}" for line in settings.describe()))
    return settings
