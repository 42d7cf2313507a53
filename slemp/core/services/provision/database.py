"""
MariaDB step — install, harden, and create the application schema and user.

Identifiers (database and user names) are validated by the
ConfigurationRecord before they get here, so they are safe to
interpolate. Passwords are quoted for SQL and travel to the client via
``MYSQL_PWD``, never in argv.
"""

from __future__ import annotations

import logging

from slemp.core.models.step import StepContext, StepResult
from slemp.core.reliability.probe import ServiceDescriptor

logger = logging.getLogger(__name__)

READY_ATTEMPTS = 10
READY_INTERVAL = 3.0


def sql_string(value: str) -> str:
    """Quote ``value`` as a SQL string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def mariadb(ctx: StepContext) -> StepResult:
    config = ctx.config
    adapters = ctx.adapters
    db = adapters.mariadb
    root_pw = config.db_root_password
    warnings: list[str] = []

    installed = adapters.apt.install(["mariadb-server", "mariadb-client"])
    if installed.failed:
        return StepResult.from_receipt(installed, "MariaDB install")

    started = adapters.systemd.start_and_enable("mariadb")
    if started.failed:
        return StepResult.from_receipt(started, "MariaDB start")

    ready = ctx.probe.wait_ready(
        ServiceDescriptor(
            name="MariaDB",
            probe=db.ping,
            max_attempts=READY_ATTEMPTS,
            interval=READY_INTERVAL,
        )
    )
    if ready.ready:
        logger.info("✓ MariaDB is ready for configuration")
    else:
        warnings.append(ready.message)

    if db.execute(f"ALTER USER 'root'@'localhost' IDENTIFIED BY {sql_string(root_pw)};").ok:
        logger.info("✓ Root password set")
    else:
        warnings.append("failed to set root password, might already be set")

    def as_root(sql: str):
        return db.execute(sql, user="root", password=root_pw)

    if as_root("DELETE FROM mysql.user WHERE User='';").failed:
        warnings.append("failed to remove anonymous users")
    as_root("DROP DATABASE IF EXISTS test;")
    as_root("DELETE FROM mysql.db WHERE Db='test' OR Db='test\\_%';")
    flushed = as_root("FLUSH PRIVILEGES;")
    if flushed.failed:
        return StepResult.from_receipt(flushed, "flush privileges")

    created = as_root(
        f"CREATE DATABASE IF NOT EXISTS `{config.db_name}` "
        "DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
    )
    if created.failed:
        return StepResult.from_receipt(created, f"create database {config.db_name}")
    logger.info("✓ Database '%s' created", config.db_name)

    user = as_root(
        f"CREATE USER IF NOT EXISTS '{config.db_user}'@'%' "
        f"IDENTIFIED BY {sql_string(config.db_password)};"
    )
    if user.failed:
        warnings.append(f"database user '{config.db_user}' might already exist")

    granted = as_root(f"GRANT ALL PRIVILEGES ON `{config.db_name}`.* TO '{config.db_user}'@'%';")
    if granted.failed:
        return StepResult.from_receipt(granted, "grant privileges")
    as_root("FLUSH PRIVILEGES;")

    if db.can_connect(config.db_user, config.db_password, config.db_name):
        logger.info("✓ Database connection test successful")
    else:
        warnings.append("database connection test failed - check credentials")

    return StepResult.success(f"database {config.db_name} ready", warnings)
