"""
Datastore adapters — MariaDB and Redis administrative clients.

Passwords go through the client's environment variable
(``MYSQL_PWD``, ``REDISCLI_AUTH``) so they never appear in argv.
"""

from __future__ import annotations

from slemp.adapters.base import Adapter
from slemp.core.models.receipt import Receipt


class MariaDBAdapter(Adapter):
    binary = "mysql"

    @property
    def name(self) -> str:
        return "mariadb"

    def execute(
        self,
        sql: str,
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ) -> Receipt:
        """Run SQL through the ``mysql`` client.

        With no user, relies on root's unix-socket authentication.
        """
        cmd = ["mysql"]
        if user:
            cmd += ["-u", user]
        if database:
            cmd.append(database)
        cmd += ["-e", sql]
        env = {"MYSQL_PWD": password} if password else None
        return self.runner.run(cmd, env=env, timeout=60)

    def ping(self) -> bool:
        return self.execute("SELECT 1").ok

    def can_connect(self, user: str, password: str, database: str) -> bool:
        return self.execute("SELECT 1;", user=user, password=password, database=database).ok


class RedisAdapter(Adapter):
    binary = "redis-cli"

    @property
    def name(self) -> str:
        return "redis"

    def ping(self, password: str | None = None) -> bool:
        """True when the server answers PONG."""
        env = {"REDISCLI_AUTH": password} if password else None
        receipt = self.runner.run(["redis-cli", "ping"], env=env, timeout=10)
        return receipt.ok and "PONG" in receipt.output

    def check_config(self, conf_path: str) -> Receipt:
        return self.runner.run(["redis-server", "-t", "-c", conf_path])
