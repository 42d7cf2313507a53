"""
Verification report — post-install health of the whole stack.

Runs after the step list, checks services, tools, ports, extensions
and credentials, and never aborts: failures become a summary count
and remediation hints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext

logger = logging.getLogger(__name__)

OUTCOME_SUCCESS = "success"
OUTCOME_ISSUES = "completed with issues"


@dataclass
class CheckResult:
    """Outcome of one verification check."""

    name: str
    passed: bool
    critical: bool = True
    message: str = ""
    hint: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "critical": self.critical,
            "message": self.message,
            "hint": self.hint,
        }


@dataclass
class VerificationReport:
    checks: list[CheckResult] = field(default_factory=list)
    remediation: list[str] = field(default_factory=list)

    def add(
        self,
        name: str,
        passed: bool,
        critical: bool = True,
        message: str = "",
        hint: str = "",
    ) -> CheckResult:
        check = CheckResult(name=name, passed=passed, critical=critical, message=message, hint=hint)
        self.checks.append(check)
        if passed:
            logger.info("✓ %s", message or name)
        elif critical:
            logger.error("✗ %s", message or name)
        else:
            logger.warning("⚠ %s", message or name)
        return check

    @property
    def failed(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.passed]

    @property
    def failed_critical(self) -> int:
        return sum(1 for c in self.checks if c.critical and not c.passed)

    @property
    def outcome(self) -> str:
        return OUTCOME_SUCCESS if self.failed_critical == 0 else OUTCOME_ISSUES

    @property
    def hints(self) -> list[str]:
        return [c.hint for c in self.checks if not c.passed and c.hint] + self.remediation

    def get(self, name: str) -> CheckResult | None:
        for check in self.checks:
            if check.name == name:
                return check
        return None

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "failed_critical": self.failed_critical,
            "checks": [c.to_dict() for c in self.checks],
            "hints": self.hints,
        }


def _check_services(ctx: StepContext, report: VerificationReport) -> None:
    for service in ctx.config.services:
        active = ctx.adapters.systemd.is_active(service)
        report.add(
            f"service:{service}",
            active,
            message=f"{service} is {'running' if active else 'not running'}",
            hint="" if active else f"sudo systemctl status {service}",
        )


def _check_tools(ctx: StepContext, report: VerificationReport) -> None:
    runner = ctx.runner
    php = ctx.adapters.php(ctx.config.php)

    report.add(
        "php",
        php.version_check().ok,
        message=f"PHP {ctx.config.php} is working",
    )
    report.add(
        "composer",
        runner.which("composer") is not None,
        message="Composer is installed",
    )
    report.add(
        "nodejs",
        runner.which("node") is not None and runner.which("npm") is not None,
        message="Node.js and NPM are installed",
    )
    report.add(
        "nginx-config",
        ctx.adapters.nginx.test_config().ok,
        message="Nginx configuration is valid",
        hint="sudo nginx -t",
    )


def _check_ports(ctx: StepContext, report: VerificationReport) -> None:
    listening = ctx.adapters.host.listening_ports()
    for port, owner in get_registry().verification_ports:
        up = port in listening
        report.add(
            f"port:{port}",
            up,
            critical=False,
            message=f"Port {port} ({owner}) is {'listening' if up else 'not listening'}",
        )


def _check_extensions(ctx: StepContext, report: VerificationReport) -> None:
    version = ctx.config.php
    php = ctx.adapters.php(version)
    modules = php.modules()

    missing = []
    for ext in get_registry().verify_extensions:
        loaded = php.extension_loaded(ext, modules)
        report.add(
            f"extension:{ext}",
            loaded,
            critical=False,
            message=f"PHP {ext} extension is {'loaded' if loaded else 'not loaded'}",
        )
        if not loaded:
            missing.append(ext)

    opcache = php.extension_loaded("opcache") and php.opcache_enabled()
    report.add(
        "extension:opcache",
        opcache,
        critical=False,
        message=f"PHP OPcache is {'enabled' if opcache else 'not enabled'}",
    )
    if not opcache:
        missing.append("opcache")

    mysql = php.extension_loaded("mysql", modules)
    report.add(
        "extension:mysql",
        mysql,
        critical=False,
        message=f"PHP MySQL support is {'loaded' if mysql else 'not loaded'}",
    )
    if not mysql:
        missing.append("mysql")

    if missing:
        packages = " ".join(f"php{version}-{ext}" for ext in missing)
        report.remediation.append(f"sudo apt update && sudo apt install {packages}")


def _check_datastores(ctx: StepContext, report: VerificationReport) -> None:
    config = ctx.config
    db_ok = ctx.adapters.mariadb.can_connect(config.db_user, config.db_password, config.db_name)
    report.add(
        "database-connection",
        db_ok,
        critical=False,
        message=f"Database connection as {config.db_user}",
        hint="" if db_ok else "check DB_USER / DB_PASSWORD in the configuration file",
    )
    pong = ctx.adapters.redis.ping(config.redis_password)
    report.add(
        "redis-connection",
        pong,
        critical=False,
        message="Redis answers authenticated PING",
    )
    exists = ctx.fs.is_dir(config.project_path)
    report.add(
        "project-directory",
        exists,
        critical=False,
        message=f"Project directory {config.project_path}",
    )


def run_verification(ctx: StepContext) -> VerificationReport:
    report = VerificationReport()
    _check_services(ctx, report)
    _check_tools(ctx, report)
    _check_ports(ctx, report)
    _check_extensions(ctx, report)
    _check_datastores(ctx, report)

    if report.failed_critical:
        logger.warning(
            "Verification: %d critical check(s) failed, installation %s",
            report.failed_critical,
            report.outcome,
        )
    else:
        logger.info("Verification passed: installation %s", report.outcome)
    return report
