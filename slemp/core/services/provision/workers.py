"""
Background work steps — Supervisor, queue workers, the permission
helper and the Laravel scheduler cron entry.
"""

from __future__ import annotations

import logging

from slemp.core.data import get_registry
from slemp.core.models.config import QueueDriver
from slemp.core.models.step import StepContext, StepResult

logger = logging.getLogger(__name__)

PERMISSION_HELPER = "/usr/local/bin/fix-laravel-permissions"
SCHEDULER_MARKER = "artisan schedule:run"


def supervisor(ctx: StepContext) -> StepResult:
    adapters = ctx.adapters
    installed = adapters.apt.install(["supervisor"])
    if installed.failed:
        return StepResult.from_receipt(installed, "supervisor install")

    ctx.fs.ensure_dir("/etc/supervisor/conf.d")
    started = adapters.systemd.start_and_enable("supervisor")
    if started.failed:
        return StepResult.from_receipt(started, "supervisor start")

    if adapters.supervisor.status().failed:
        return StepResult.warning("supervisorctl status failed")
    return StepResult.success("supervisor running")


def queue_command(ctx: StepContext) -> str:
    config = ctx.config
    connection = " redis" if config.queue_driver == QueueDriver.REDIS else ""
    return f"php {config.project_path}/artisan queue:work{connection} --tries=3 --timeout=90"


def render_queue_program(ctx: StepContext) -> str:
    config = ctx.config
    return get_registry().render(
        "supervisor_queue.conf",
        program=config.supervisor_program,
        command=queue_command(ctx),
        web_user=ctx.settings.web_user,
        worker_count=config.worker_count,
        project_path=config.project_path,
    )


def queue_workers(ctx: StepContext) -> StepResult:
    config = ctx.config
    settings = ctx.settings
    adapters = ctx.adapters
    warnings: list[str] = []

    ctx.fs.write_text(config.supervisor_config_path, render_queue_program(ctx))
    logger.info(
        "✓ Supervisor queue configuration created: %s (%d processes, %s)",
        config.supervisor_config_path,
        config.worker_count,
        config.queue_driver.value,
    )

    logs = f"{config.project_path}/storage/logs"
    ctx.fs.ensure_dir(logs)
    ctx.runner.run(["chown", "-R", f"{settings.web_user}:{settings.web_group}", logs])
    ctx.runner.run(["chmod", "-R", "775", logs])

    if adapters.supervisor.reread().failed:
        warnings.append("failed to reload Supervisor configuration")
    if adapters.supervisor.update().failed:
        warnings.append("failed to update Supervisor programs")

    return StepResult.success(f"{config.worker_count} queue worker(s) configured", warnings)


def permission_helper(ctx: StepContext) -> StepResult:
    settings = ctx.settings
    script = get_registry().render(
        "fix_laravel_permissions.sh",
        project_root=settings.project_root,
        web_user=settings.web_user,
        web_group=settings.web_group,
    )
    ctx.fs.write_text(PERMISSION_HELPER, script, mode=0o755)
    return StepResult.success(f"created {PERMISSION_HELPER}")


def scheduler_entry(ctx: StepContext) -> str:
    return (
        f"* * * * * cd {ctx.config.project_path} && "
        "php artisan schedule:run >> /dev/null 2>&1"
    )


def scheduler(ctx: StepContext) -> StepResult:
    crontab = ctx.adapters.crontab
    systemd = ctx.adapters.systemd
    user = ctx.settings.web_user
    warnings: list[str] = []

    lines = crontab.read(user) or []
    if any(SCHEDULER_MARKER in line for line in lines):
        logger.info("✓ Laravel scheduler cron job already exists")
    else:
        written = crontab.write(user, [*lines, scheduler_entry(ctx)])
        if written.failed:
            return StepResult.from_receipt(written, "scheduler cron job")
        logger.info("✓ Laravel scheduler cron job added for %s", user)

    if not systemd.is_active("cron"):
        if systemd.start_and_enable("cron").failed:
            warnings.append("failed to start cron service")

    return StepResult.success("scheduler registered", warnings)
