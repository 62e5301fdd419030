"""
MySQL resources - manage databases and users through the mysql client.

Statements are fed to "mysql -NB" on stdin so that passwords never show
up in the process list.
"""

from typing import Any, Dict

from wpstack.core import Action, Plan, Platform, Resource

MYSQL_CLIENT = ["mysql", "-NB"]


def quote_identifier(name: str) -> str:
    """Quote a schema object name with backticks."""
    return "`" + name.replace("`", "``") + "`"


def quote_literal(value: str) -> str:
    """Quote a string literal for MySQL."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class _MySQLResource(Resource):
    """Shared mysql client plumbing."""

    def _query(self, sql: str) -> str:
        return self._transport.check_command(MYSQL_CLIENT, input=sql)


class MySQLDatabase(_MySQLResource):
    """
    Database that must exist.

    Example:
        MySQLDatabase("wp1")
    """

    def __init__(
        self,
        name: str,
        charset: str = "utf8",
        collation: str = "utf8_unicode_ci",
        **options,
    ):
        super().__init__(name, **options)
        self.charset = charset
        self.collation = collation

    def resource_type(self) -> str:
        return "mysql_db"

    def check(self, platform: Platform) -> Dict[str, Any]:
        output = self._query(
            "SELECT SCHEMA_NAME FROM INFORMATION_SCHEMA.SCHEMATA "
            f"WHERE SCHEMA_NAME={quote_literal(self.name)};"
        )
        rows = [line.strip() for line in output.split("\n")]
        return {"exists": self.name in rows}

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True}

    def apply(self, plan: Plan, platform: Platform) -> None:
        if plan.action == Action.CREATE:
            self._query(
                f"CREATE DATABASE {quote_identifier(self.name)} "
                f"DEFAULT CHARACTER SET {self.charset} COLLATE {self.collation};"
            )


class MySQLUser(_MySQLResource):
    """
    Database user with full privileges on one database.

    The grant is asserted on every run, whether or not the user was just
    created, so a run that died between CREATE USER and GRANT heals on
    the next invocation.

    Example:
        MySQLUser("wpuser", password="secret", database="wp1")
    """

    def __init__(
        self,
        name: str,
        password: str,
        database: str,
        host: str = "localhost",
        **options,
    ):
        super().__init__(name, **options)
        self.password = password
        self.database = database
        self.host = host

    def resource_type(self) -> str:
        return "mysql_user"

    @property
    def account(self) -> str:
        return f"{quote_literal(self.name)}@{quote_literal(self.host)}"

    def check(self, platform: Platform) -> Dict[str, Any]:
        output = self._query(
            "SELECT User FROM mysql.user "
            f"WHERE User={quote_literal(self.name)} AND Host={quote_literal(self.host)};"
        )
        rows = [line.strip() for line in output.split("\n")]
        return {"exists": self.name in rows, "grants_asserted": False}

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True, "grants_asserted": True}

    def apply(self, plan: Plan, platform: Platform) -> None:
        if plan.action == Action.CREATE:
            self._query(
                f"CREATE USER IF NOT EXISTS {self.account} "
                f"IDENTIFIED BY {quote_literal(self.password)};"
            )
        self._query(
            f"GRANT ALL ON {quote_identifier(self.database)}.* TO {self.account}; "
            "FLUSH PRIVILEGES;"
        )
