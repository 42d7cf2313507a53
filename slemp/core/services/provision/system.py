"""
System update step — package index refresh, upgrade and base tooling.
"""

from __future__ import annotations

import logging

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult
from slemp.core.reliability.probe import ServiceDescriptor

logger = logging.getLogger(__name__)

UPDATE_ATTEMPTS = 3
UPDATE_INTERVAL = 5.0


def wait_for_package_manager(ctx: StepContext) -> bool:
    """Block (bounded) while another process holds the dpkg frontend lock."""
    apt = ctx.adapters.apt
    result = ctx.probe.wait_ready(
        ServiceDescriptor(
            name="package manager lock",
            probe=lambda: not apt.lock_held(),
            max_attempts=ctx.settings.apt_lock_wait_attempts,
            interval=ctx.settings.apt_lock_wait_interval,
        )
    )
    return result.ready


def system_update(ctx: StepContext) -> StepResult:
    apt = ctx.adapters.apt
    warnings: list[str] = []

    # Nothing to kill is the normal case.
    apt.kill_stale()
    if not wait_for_package_manager(ctx):
        return StepResult.failure("another package manager is still holding the dpkg lock")

    updated = ctx.probe.retry(
        apt.update, UPDATE_ATTEMPTS, UPDATE_INTERVAL, what="apt-get update"
    )
    if updated.failed:
        return StepResult.failure(
            f"failed to update package lists after {UPDATE_ATTEMPTS} attempts: {updated.error}",
            exit_code=updated.returncode,
        )
    logger.info("✓ Package lists updated")

    logger.info("Upgrading system packages (this may take a while)...")
    upgraded = apt.upgrade()
    if upgraded.failed:
        warnings.append("some packages failed to upgrade")

    essentials = get_registry().essentials
    installed = apt.install(essentials)
    if installed.failed:
        return StepResult.from_receipt(installed, "essential packages")

    return StepResult.success(f"{len(essentials)} essential packages installed", warnings)
