"""
Install use case — provision the whole stack on this host.

This is the top-level orchestrator: preconditions, run lock, wizard,
step execution with cleanup on critical failure, then verification.
The full vertical slice from ``slemp install`` to a verified host.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from slemp.adapters.registry import AdapterRegistry
from slemp.adapters.shell.filesystem import Filesystem
from slemp.core.config.settings import Settings
from slemp.core.engine.cleanup import CleanupHandler
from slemp.core.engine.executor import ExecutionReport, StepExecutor, generate_operation_id
from slemp.core.models.config import ConfigurationRecord, PhpVersion, QueueDriver
from slemp.core.models.step import Step, StepContext
from slemp.core.observability.verification import VerificationReport, run_verification
from slemp.core.persistence.run_lock import RunLock, RunLockHeld
from slemp.core.reliability.probe import ServiceProbe
from slemp.core.services.preflight import (
    PreconditionError,
    ServerSpecs,
    check_os,
    check_root,
    collect_server_specs,
)
from slemp.core.services.provision import build_install_steps
from slemp.core.services.wizard import (
    Prompter,
    WizardCancelled,
    build_noninteractive_config,
    confirm_configuration,
    run_wizard,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallOptions:
    non_interactive: bool = False
    php_version: PhpVersion | None = None
    queue_driver: QueueDriver | None = None


@dataclass
class InstallResult:
    """Result of an install run."""

    config: ConfigurationRecord | None = None
    specs: ServerSpecs | None = None
    report: ExecutionReport | None = None
    verification: VerificationReport | None = None
    cancelled: bool = False
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.cancelled:
            return 0
        if self.error or (self.report is not None and self.report.aborted):
            return 1
        return 0

    def to_dict(self) -> dict:
        result: dict = {"exit_code": self.exit_code, "cancelled": self.cancelled}
        if self.error:
            result["error"] = self.error
        if self.config:
            result["project"] = self.config.project_name
            result["domain"] = self.config.domain
        if self.specs:
            result["server"] = self.specs.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()
        if self.verification:
            result["verification"] = self.verification.to_dict()
        return result


def default_adapters(settings: Settings) -> AdapterRegistry:
    return AdapterRegistry(fs=Filesystem(settings.filesystem_root))


def run_install(
    options: InstallOptions,
    settings: Settings,
    prompter: Prompter,
    adapters: AdapterRegistry | None = None,
    probe: ServiceProbe | None = None,
    steps: Sequence[Step] | None = None,
    euid: int | None = None,
) -> InstallResult:
    """Install the stack.

    Args:
        options: Parsed CLI choices.
        settings: Host settings.
        prompter: Terminal seam for the wizard and OS prompt.
        adapters: Optional pre-configured adapter registry.
        probe: Optional probe (tests pass one with a no-op sleep).
        steps: Optional step list override.
        euid: Effective UID override for the root check.

    Returns:
        InstallResult; ``exit_code`` is what the process should exit with.
    """
    result = InstallResult()
    adapters = adapters or default_adapters(settings)

    try:
        check_root(euid)
    except PreconditionError as e:
        result.error = str(e)
        return result

    try:
        with RunLock(settings.lock_file, adapters.fs):
            _install_locked(options, settings, prompter, adapters, probe, steps, result)
    except RunLockHeld as e:
        result.error = str(e)
    return result


def _install_locked(
    options: InstallOptions,
    settings: Settings,
    prompter: Prompter,
    adapters: AdapterRegistry,
    probe: ServiceProbe | None,
    steps: Sequence[Step] | None,
    result: InstallResult,
) -> None:
    interactive = not options.non_interactive

    # ── Preconditions ────────────────────────────────────────────
    try:
        check_os(adapters, settings, prompter, interactive=interactive)
    except PreconditionError as e:
        result.error = str(e)
        return
    result.specs = collect_server_specs(adapters, settings)

    # ── Configuration ────────────────────────────────────────────
    if interactive:
        record = run_wizard(
            prompter,
            settings,
            php_default=options.php_version,
            queue_default=options.queue_driver,
        )
    else:
        record = build_noninteractive_config(
            settings,
            php_version=options.php_version,
            queue_driver=options.queue_driver,
        )
    try:
        record = confirm_configuration(record, prompter, settings, adapters.fs)
    except WizardCancelled:
        result.cancelled = True
        return
    result.config = record

    # ── Steps ────────────────────────────────────────────────────
    ctx = StepContext(
        config=record,
        settings=settings,
        adapters=adapters,
        probe=probe or ServiceProbe(),
    )
    cleanup = CleanupHandler(adapters, record)
    executor = StepExecutor(steps if steps is not None else build_install_steps())

    with cleanup.guard():
        report = executor.run(ctx, operation_id=generate_operation_id())
    result.report = report

    if report.aborted:
        failed = report.failed_result
        cleanup.run(report.aborted_step or "", failed.exit_code if failed else 1)
        result.error = failed.error if failed else "installation aborted"
        return

    # ── Verification ─────────────────────────────────────────────
    result.verification = run_verification(ctx)
    _log_completion(record, settings, report, result.verification)


def _log_completion(
    record: ConfigurationRecord,
    settings: Settings,
    report: ExecutionReport,
    verification: VerificationReport,
) -> None:
    logger.info(
        "Installation %s (%d steps, %d with warnings)",
        verification.outcome,
        report.total,
        report.warnings,
    )
    logger.info("Project directory: %s", record.project_path)
    logger.info("Website: http://%s", record.domain)
    logger.info("Deploy your Laravel application into %s", record.project_path)
    logger.info(
        "To obtain SSL certificates run: sudo slemp ssl --domain %s --email %s",
        record.domain,
        record.ssl_email,
    )
    for hint in verification.hints:
        logger.warning("Hint: %s", hint)
