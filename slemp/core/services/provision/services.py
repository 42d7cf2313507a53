"""Final restart sweep over every stack service."""

from __future__ import annotations

import logging

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult

logger = logging.getLogger(__name__)


def service_restart(ctx: StepContext) -> StepResult:
    systemd = ctx.adapters.systemd
    warnings: list[str] = []

    for service in ctx.config.services:
        if not systemd.exists(service):
            logger.debug("%s is not installed, skipping restart", service)
            continue
        if systemd.restart(service).ok:
            logger.info("✓ %s restarted", service)
            continue

        if service == "redis-server":
            conf = get_registry().redis.get("config", "/etc/redis/redis.conf")
            check = ctx.adapters.redis.check_config(conf)
            if check.failed:
                warnings.append(f"redis configuration test failed: {check.error}")
        if systemd.start(service).failed:
            warnings.append(f"failed to start {service}")
        else:
            logger.info("✓ %s started", service)

    return StepResult.success("services restarted", warnings)
