"""
Removal orchestrator — tears the stack down and reports what is left.

Phases run in a fixed order and never abort: each stop, purge and
delete records a RemovalOutcome in the report, and a residual scan at
the end lists whatever survived. The database family (packages, data
directories, repositories, runtime files) is only touched when the
operator confirms database removal separately.
"""

from __future__ import annotations

import logging

from slemp.adapters.registry import AdapterRegistry
from slemp.adapters.system.systemd import SystemdAdapter
from slemp.core.config.settings import Settings
from slemp.core.data import get_registry
from slemp.core.models.receipt import Receipt
from slemp.core.models.removal import RemovalOutcome, RemovalReport, ResidualFindings
from slemp.core.services.wizard import Prompter, ask_yes_no

logger = logging.getLogger(__name__)

CONFIRM_ALL = "Are you sure you want to continue? (y/N)"
CONFIRM_DATABASE = (
    "Are you sure you want to remove MariaDB/MySQL? This will delete ALL databases! (y/N)"
)


def _outcome(receipt: Receipt) -> RemovalOutcome:
    return RemovalOutcome.REMOVED if receipt.ok else RemovalOutcome.FAILED


class _Teardown:
    """State shared by the removal phases of one run."""

    def __init__(
        self,
        adapters: AdapterRegistry,
        settings: Settings,
        report: RemovalReport,
    ):
        self.adapters = adapters
        self.settings = settings
        self.report = report
        self.catalog = get_registry().removal
        self.families = [
            f
            for f in get_registry().removal_families
            if not (f.get("database") and not report.database_removed)
        ]

    @property
    def fs(self):
        return self.adapters.fs

    # ── Helpers ─────────────────────────────────────────────────

    def expand(self, pattern: str) -> list[str]:
        if "*" in pattern or "?" in pattern:
            return self.fs.glob(pattern)
        return [pattern]

    def remove_path(self, phase: str, path: str, quiet_absent: bool = False) -> None:
        outcome = self.fs.remove(path)
        if outcome == RemovalOutcome.ABSENT and quiet_absent:
            return
        self.report.record(phase, path, outcome)
        if outcome == RemovalOutcome.REMOVED:
            logger.debug("Removed %s", path)

    # ── Phases ──────────────────────────────────────────────────

    def stop_services(self) -> None:
        logger.info("Stopping and disabling services...")
        systemd = self.adapters.systemd
        for family in self.families:
            for service in family.get("services", []):
                active = systemd.is_active(service)
                enabled = systemd.is_enabled(service)
                if not (active or enabled):
                    self.report.record("stop", service, RemovalOutcome.ABSENT)
                else:
                    receipts = []
                    if active:
                        receipts.append(systemd.stop(service))
                    if enabled:
                        receipts.append(systemd.disable(service))
                    failed = [r for r in receipts if r.failed]
                    detail = (failed[0].error or "") if failed else ""
                    outcome = RemovalOutcome.FAILED if failed else RemovalOutcome.REMOVED
                    self.report.record("stop", service, outcome, detail)
                    if failed:
                        logger.warning("Failed to stop %s: %s", service, detail)

                for unit in SystemdAdapter.unit_file_paths(service):
                    self.remove_path("units", unit, quiet_absent=True)
        systemd.daemon_reload()

    def purge_packages(self) -> None:
        logger.info("Purging packages...")
        apt = self.adapters.apt
        for family in self.families:
            for package in family.get("packages", []):
                if not apt.is_installed(package):
                    self.report.record("purge", package, RemovalOutcome.ABSENT)
                    continue
                receipt = apt.purge([package])
                self.report.record("purge", package, _outcome(receipt), receipt.error or "")

            wildcard = family.get("wildcard")
            if wildcard:
                if not apt.installed_matching(family["pattern"]):
                    self.report.record("purge", " ".join(wildcard), RemovalOutcome.ABSENT)
                else:
                    receipt = apt.purge(list(wildcard), allow_held=True)
                    self.report.record(
                        "purge", " ".join(wildcard), _outcome(receipt), receipt.error or ""
                    )

        cleanup = apt.autoremove()
        if cleanup.failed:
            logger.warning("apt autoremove failed: %s", cleanup.error)

    def delete_directories(self) -> None:
        logger.info("Removing configuration and data directories...")
        for family in self.families:
            for pattern in family.get("directories", []):
                for path in self.expand(pattern):
                    self.remove_path("directories", path)

        root = self.settings.project_root
        for path, outcome in self.fs.remove_contents(root):
            self.report.record("directories", path, outcome)

    def remove_cron_entries(self) -> None:
        logger.info("Removing Laravel cron entries...")
        cron = self.catalog.get("cron", {})
        pattern = cron.get("pattern", "schedule:run")
        marker = cron.get("marker", "Laravel Scheduler")
        user = self.settings.web_user
        crontab = self.adapters.crontab

        lines = crontab.read(user)
        if lines is None:
            self.report.record("cron", f"crontab:{user}", RemovalOutcome.ABSENT)
        else:
            keep = [line for line in lines if pattern not in line and marker not in line]
            if len(keep) == len(lines):
                self.report.record("cron", f"crontab:{user}", RemovalOutcome.ABSENT)
            elif any(line.strip() for line in keep):
                receipt = crontab.write(user, keep)
                self.report.record("cron", f"crontab:{user}", _outcome(receipt), receipt.error or "")
            else:
                receipt = crontab.remove(user)
                self.report.record("cron", f"crontab:{user}", _outcome(receipt), receipt.error or "")

        cron_d = cron.get("cron_d", "/etc/cron.d").rstrip("/")
        for path in self.fs.glob(f"{cron_d}/*"):
            name = path.rsplit("/", 1)[-1]
            content = self.fs.read_text(path) or ""
            if "laravel" in name.lower() or pattern in content:
                self.remove_path("cron", path)

    def remove_helpers(self) -> None:
        logger.info("Removing helper scripts...")
        for path in self.catalog.get("helper_scripts", []):
            self.remove_path("helpers", path)

    def remove_repositories(self) -> None:
        logger.info("Removing repository sources...")
        apt = self.adapters.apt
        for ppa in self.catalog.get("ppas", []):
            owner = ppa.removeprefix("ppa:").split("/", 1)[0]
            sources = self.fs.glob(f"/etc/apt/sources.list.d/*{owner}*")
            if not sources:
                self.report.record("repositories", ppa, RemovalOutcome.ABSENT)
                continue
            receipt = apt.remove_ppa(ppa)
            self.report.record("repositories", ppa, _outcome(receipt), receipt.error or "")
            for path in sources:
                self.remove_path("repositories", path, quiet_absent=True)

        for family in self.families:
            for pattern in family.get("repositories", []):
                for path in self.expand(pattern):
                    self.remove_path("repositories", path, quiet_absent=True)

    def clean_homes(self) -> None:
        logger.info("Cleaning user home directories...")
        host = self.adapters.host
        homes = [user.home for user in host.human_users()]
        homes.append(host.root_home())

        for home in dict.fromkeys(homes):
            home = home.rstrip("/")
            if not self.fs.is_dir(home):
                continue
            for artifact in self.catalog.get("home_artifacts", []):
                self.remove_path("homes", f"{home}/{artifact}", quiet_absent=True)
            for name in self.catalog.get("alias_files", []):
                self.strip_aliases(f"{home}/{name}", stray=name == ".bashrc")

    def strip_aliases(self, path: str, stray: bool) -> None:
        text = self.fs.read_text(path)
        if text is None:
            return
        block = self.catalog.get("alias_block", {})
        cleaned = strip_alias_block(text, block.get("begin", ""), block.get("end", ""))
        if stray:
            cleaned = strip_alias_lines(cleaned, self.catalog.get("alias_lines", []))
        if cleaned == text:
            return
        try:
            self.fs.write_text(path, cleaned)
        except OSError as e:
            self.report.record("homes", path, RemovalOutcome.FAILED, str(e))
            return
        self.report.record("homes", path, RemovalOutcome.REMOVED, "laravel aliases")

    def clean_residue(self) -> None:
        logger.info("Cleaning runtime residue...")
        skip = set()
        if not self.report.database_removed:
            skip = set(self.catalog.get("database_residue", []))
        for pattern in self.catalog.get("system_residue", []):
            if pattern in skip:
                continue
            for path in self.expand(pattern):
                self.remove_path("residue", path, quiet_absent=True)

        receipt = self.adapters.apt.clean()
        if receipt.failed:
            logger.warning("apt-get clean failed: %s", receipt.error)

    def scan_residuals(self) -> ResidualFindings:
        logger.info("Scanning for remaining components...")
        apt = self.adapters.apt
        systemd = self.adapters.systemd
        findings = ResidualFindings()

        for family in self.families:
            pattern = family.get("pattern")
            if pattern:
                remaining = apt.installed_matching(pattern)
                if remaining:
                    findings.packages[family["name"]] = remaining
            for service in family.get("services", []):
                if systemd.is_active(service):
                    findings.active_services.append(service)
                findings.orphaned_units.extend(
                    unit for unit in SystemdAdapter.unit_file_paths(service) if self.fs.exists(unit)
                )

        findings.php_binary = self.adapters.runner.which("php")

        if findings.clean:
            logger.info("✓ No remaining components detected")
        else:
            for family, packages in findings.packages.items():
                logger.warning("Remaining %s packages: %s", family, " ".join(packages))
            for service in findings.active_services:
                logger.warning("Service still running: %s", service)
            for unit in findings.orphaned_units:
                logger.warning("Unit file still present: %s", unit)
            if findings.php_binary:
                logger.warning("PHP binary still present: %s", findings.php_binary)
        return findings


def strip_alias_block(text: str, begin: str, end: str) -> str:
    """Drop every ``begin`` .. ``end`` block (inclusive)."""
    if not begin or not end:
        return text
    kept: list[str] = []
    inside = False
    for line in text.splitlines(keepends=True):
        stripped = line.strip()
        if not inside and stripped == begin:
            inside = True
            continue
        if inside:
            if stripped == end:
                inside = False
            continue
        kept.append(line)
    return "".join(kept)


def strip_alias_lines(text: str, prefixes: list[str]) -> str:
    lines = text.splitlines(keepends=True)
    return "".join(
        line for line in lines if not any(line.lstrip().startswith(p) for p in prefixes)
    )


def run_removal(
    adapters: AdapterRegistry,
    settings: Settings,
    prompter: Prompter,
) -> RemovalReport:
    """Confirm with the operator, then run every teardown phase."""
    report = RemovalReport()

    logger.warning("This will remove the LEMP stack, Laravel tooling and related files")
    if not ask_yes_no(prompter, CONFIRM_ALL, default=False):
        logger.info("Removal cancelled.")
        report.cancelled = True
        return report

    report.database_removed = ask_yes_no(prompter, CONFIRM_DATABASE, default=False)
    if not report.database_removed:
        report.kept = [
            f["name"] for f in get_registry().removal_families if f.get("database")
        ]
        logger.info("Keeping MariaDB/MySQL: %s", ", ".join(report.kept))

    teardown = _Teardown(adapters, settings, report)
    teardown.stop_services()
    teardown.purge_packages()
    teardown.delete_directories()
    teardown.remove_cron_entries()
    teardown.remove_helpers()
    teardown.remove_repositories()
    teardown.clean_homes()
    teardown.clean_residue()
    report.residual = teardown.scan_residuals()

    logger.info(
        "Removal finished: %d removed, %d absent, %d failed",
        report.removed,
        report.absent,
        report.failed,
    )
    for action in report.failures:
        logger.warning("Failed %s: %s %s", action.phase, action.target, action.detail)
    return report
