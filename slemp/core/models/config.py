"""
Configuration record — the validated parameters of one install run.

Built once by the wizard, frozen, and handed to every step through
the StepContext. Defaults are pure functions of the project name so
the same answers always produce the same record.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slemp.core.services import validators

DEFAULT_PROJECT_NAME = "laravel-project"
DEFAULT_WORKER_COUNT = 3
HIDDEN = "[HIDDEN]"


class PhpVersion(str, Enum):
    """Supported PHP runtime versions."""

    PHP_83 = "8.3"
    PHP_84 = "8.4"


class QueueDriver(str, Enum):
    """Supported Laravel queue backends."""

    DATABASE = "database"
    REDIS = "redis"


# ── Deterministic defaults ──────────────────────────────────────────


def fold_project_name(project_name: str) -> str:
    """Project name with hyphens folded to underscores (SQL-safe)."""
    return project_name.replace("-", "_")


def default_domain(project_name: str, interactive: bool) -> str:
    """``<project>.com`` when prompting, ``<project>.local`` otherwise."""
    suffix = "com" if interactive else "local"
    return f"{project_name}.{suffix}"


def default_email(domain: str) -> str:
    return f"admin@{domain}"


def default_db_name(project_name: str) -> str:
    return f"{fold_project_name(project_name)}_db"


def default_db_user(project_name: str) -> str:
    return f"{fold_project_name(project_name)}_db_usr"


# ── Record ──────────────────────────────────────────────────────────


class ConfigurationRecord(BaseModel):
    """The single source of truth for an installation run.

    Immutable: late adjustments (e.g. forcing ``install_ssl`` off after
    the summary) go through ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    domain: str
    ssl_email: str
    db_name: str
    db_user: str
    db_password: str = Field(repr=False)
    db_root_password: str = Field(repr=False)
    redis_password: str = Field(repr=False)
    php_version: PhpVersion = PhpVersion.PHP_83
    queue_driver: QueueDriver = QueueDriver.DATABASE
    worker_count: int = DEFAULT_WORKER_COUNT
    interactive: bool = True
    install_ssl: bool = False
    project_root: str = "/var/www"

    @field_validator("project_name")
    @classmethod
    def _check_project_name(cls, v: str) -> str:
        if not validators.is_valid_project_name(v):
            raise ValueError(
                "project name must be 3-50 letters, numbers, hyphens or underscores"
            )
        return v

    @field_validator("domain")
    @classmethod
    def _check_domain(cls, v: str) -> str:
        if not validators.is_valid_domain(v):
            raise ValueError(f"invalid domain: {v!r}")
        return v

    @field_validator("ssl_email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if not validators.is_valid_email(v):
            raise ValueError(f"invalid email: {v!r}")
        return v

    @field_validator("db_name")
    @classmethod
    def _check_db_name(cls, v: str) -> str:
        if not validators.is_valid_db_name(v):
            raise ValueError("database name must be letters, numbers, underscores (max 64)")
        return v

    @field_validator("db_user")
    @classmethod
    def _check_db_user(cls, v: str) -> str:
        if not validators.is_valid_db_user(v):
            raise ValueError("database user must be letters, numbers, underscores (max 32)")
        return v

    @field_validator("db_password", "db_root_password", "redis_password")
    @classmethod
    def _check_secret(cls, v: str) -> str:
        if len(v) < validators.MANUAL_PASSWORD_MIN:
            raise ValueError(
                f"password must be at least {validators.MANUAL_PASSWORD_MIN} characters"
            )
        return v

    @field_validator("worker_count")
    @classmethod
    def _check_workers(cls, v: int) -> int:
        if not validators.is_valid_worker_count(v):
            raise ValueError(
                f"worker count must be between {validators.WORKERS_MIN} "
                f"and {validators.WORKERS_MAX}"
            )
        return v

    # ── Derived paths and names ─────────────────────────────────

    @property
    def project_path(self) -> str:
        return f"{self.project_root}/{self.project_name}"

    @property
    def php(self) -> str:
        """Version string, e.g. ``8.3``."""
        return self.php_version.value

    @property
    def php_binary(self) -> str:
        return f"php{self.php}"

    @property
    def php_fpm_service(self) -> str:
        return f"php{self.php}-fpm"

    @property
    def fpm_socket_path(self) -> str:
        return f"/run/php/php{self.php}-fpm-{self.project_name}.sock"

    @property
    def pool_config_path(self) -> str:
        return f"/etc/php/{self.php}/fpm/pool.d/{self.project_name}.conf"

    @property
    def site_config_path(self) -> str:
        return f"/etc/nginx/sites-available/{self.project_name}"

    @property
    def site_enabled_path(self) -> str:
        return f"/etc/nginx/sites-enabled/{self.project_name}"

    @property
    def supervisor_program(self) -> str:
        return f"{self.project_name}-queue"

    @property
    def supervisor_config_path(self) -> str:
        return f"/etc/supervisor/conf.d/{self.project_name}-queue.conf"

    @property
    def services(self) -> list[str]:
        """Daemons this stack runs, in start order."""
        return [
            "nginx",
            self.php_fpm_service,
            "mariadb",
            "redis-server",
            "supervisor",
        ]

    # ── Rendering ───────────────────────────────────────────────

    def summary_lines(self, node_version: str = "") -> list[str]:
        """Human-readable summary with every secret shown as ``[HIDDEN]``."""
        lines = [
            "Project Configuration:",
            f"  - Project Name: {self.project_name}",
            f"  - Domain: {self.domain}",
            f"  - SSL Email: {self.ssl_email}",
            f"  - Project Path: {self.project_path}",
            "",
            "Database Configuration:",
            f"  - Database Name: {self.db_name}",
            f"  - Database User: {self.db_user}",
            f"  - Database Password: {HIDDEN}",
            f"  - Root Password: {HIDDEN}",
            "",
            "Services Configuration:",
            f"  - Redis Password: {HIDDEN}",
            f"  - Queue Workers: {self.worker_count}",
            f"  - Queue Driver: {self.queue_driver.value}",
            f"  - PHP Version: {self.php}",
        ]
        if node_version:
            lines.append(f"  - Node.js Version: {node_version}")
        return lines

    def to_recovery_lines(self, node_version: str = "") -> list[str]:
        """``KEY=VALUE`` lines for the recovery file, secrets in clear."""
        lines = [
            "",
            f"PROJECT_NAME={self.project_name}",
            f"DOMAIN_NAME={self.domain}",
            f"SSL_EMAIL={self.ssl_email}",
            f"PROJECT_ROOT={self.project_root}",
            "",
            f"DB_NAME={self.db_name}",
            f"DB_USER={self.db_user}",
            f"DB_PASSWORD={self.db_password}",
            f"DB_ROOT_PASSWORD={self.db_root_password}",
            "",
            f"REDIS_PASSWORD={self.redis_password}",
            f"SUPERVISOR_PROCESS_NUM={self.worker_count}",
            f"QUEUE_DRIVER={self.queue_driver.value}",
            f"PHP_VERSION={self.php}",
        ]
        if node_version:
            lines.append(f"NODE_JS_VERSION={node_version}")
        lines += [
            f"INSTALL_SSL={'true' if self.install_ssl else 'false'}",
            "",
            "# Access URLs after installation:",
            f"# HTTP: http://{self.domain}",
            f"# HTTPS: https://{self.domain} (after SSL setup)",
            "",
            "# Database Connection:",
            "# Host: localhost",
            f"# Database: {self.db_name}",
            f"# Username: {self.db_user}",
            "",
            "# Important Commands:",
            f"# Fix Laravel permissions: fix-laravel-permissions {self.project_path}",
            "# Supervisor status: sudo supervisorctl status",
            f"# SSL setup: sudo slemp ssl --domain {self.domain} --email {self.ssl_email}",
        ]
        return lines
