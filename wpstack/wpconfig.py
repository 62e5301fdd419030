"""
Text patches for wp-config.php.

These work on the known layout of wp-config-sample.php; nothing here
parses PHP.
"""

import re
from typing import List

from wpstack.errors import WpConfigError

CREDENTIAL_PLACEHOLDERS = {
    "database_name_here": "name",
    "username_here": "user",
    "password_here": "password",
}

FS_METHOD_ANCHOR = "DB_COLLATE"
FS_METHOD_LINE = "define( 'FS_METHOD', 'direct' );"

SALT_START = re.compile(r"^\s*define\(\s*'AUTH_KEY'")
SALT_END = re.compile(r"^\s*define\(\s*'NONCE_SALT'")


def php_quote(value: str) -> str:
    """Escape value for a single-quoted PHP string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def substitute_credentials(text: str, name: str, user: str, password: str) -> str:
    """
    Replace the first occurrence of each credential placeholder.

    The placeholders sit inside single-quoted PHP literals, so values are
    escaped for that context and otherwise inserted literally.
    """
    values = {"name": name, "user": user, "password": password}
    for placeholder, field in CREDENTIAL_PLACEHOLDERS.items():
        text = text.replace(placeholder, php_quote(values[field]), 1)
    return text


def insert_after_anchor(text: str, anchor: str = FS_METHOD_ANCHOR, line: str = FS_METHOD_LINE) -> str:
    """Insert line after every line that contains anchor."""
    out: List[str] = []
    for current in text.splitlines(keepends=True):
        out.append(current)
        if anchor in current:
            if not current.endswith("\n"):
                out[-1] = current + "\n"
            out.append(line + "\n")
    return "".join(out)


def splice_salts(text: str, salts: str) -> str:
    """
    Swap the sample key/salt block for a freshly generated one.

    The block runs from the first AUTH_KEY define to the next NONCE_SALT
    define, both included.

    Raises:
        WpConfigError: if either marker is missing
    """
    lines = text.splitlines(keepends=True)

    start = next((i for i, line in enumerate(lines) if SALT_START.match(line)), None)
    if start is None:
        raise WpConfigError("AUTH_KEY define not found in wp-config.php")

    end = next(
        (i for i in range(start + 1, len(lines)) if SALT_END.match(lines[i])),
        None,
    )
    if end is None:
        raise WpConfigError("NONCE_SALT define not found after AUTH_KEY in wp-config.php")

    block = salts if salts.endswith("\n") else salts + "\n"
    return "".join(lines[:start]) + block + "".join(lines[end + 1:])


def render_config(sample: str, name: str, user: str, password: str, salts: str) -> str:
    """Apply every patch to the sample configuration."""
    text = substitute_credentials(sample, name, user, password)
    text = insert_after_anchor(text)
    return splice_salts(text, salts)
