"""
Redis step — install and tune redis.conf in place.

Each directive is replaced where it already appears (active or
commented out) and appended otherwise, so applying the same settings
twice leaves exactly one line per directive.
"""

from __future__ import annotations

import logging
import re

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult
from slemp.core.reliability.probe import ServiceDescriptor

logger = logging.getLogger(__name__)

PING_ATTEMPTS = 5
PING_INTERVAL = 2.0


def set_directive(text: str, key: str, value: str) -> str:
    """Set ``key value`` in a redis.conf body.

    The first active line for ``key`` is replaced and any further
    active or commented ``key`` lines are dropped. With no active line,
    the first commented one is replaced. Otherwise the directive is
    appended.
    """
    active = re.compile(rf"^\s*{re.escape(key)}(\s|$)")
    commented = re.compile(rf"^\s*#\s*{re.escape(key)}(\s|$)")
    lines = text.splitlines()
    wanted = f"{key} {value}"

    index = next((i for i, line in enumerate(lines) if active.match(line)), None)
    if index is None:
        index = next((i for i, line in enumerate(lines) if commented.match(line)), None)

    if index is None:
        lines.append(wanted)
    else:
        lines = [
            wanted if i == index else line
            for i, line in enumerate(lines)
            if i == index or not (active.match(line) or commented.match(line))
        ]
    return "\n".join(lines) + "\n"


def set_save_points(text: str, points: list[str]) -> str:
    """Replace every ``save`` line (active or commented) with ``points``."""
    save = re.compile(r"^\s*#?\s*save(\s|$)")
    lines = text.splitlines()
    index = next((i for i, line in enumerate(lines) if save.match(line)), len(lines))
    kept = [line for line in lines if not save.match(line)]
    before = sum(1 for line in lines[:index] if not save.match(line))
    kept[before:before] = [f"save {p}" for p in points]
    return "\n".join(kept) + "\n"


def configure_redis_text(text: str, password: str) -> str:
    data = get_registry()
    text = set_directive(text, "requirepass", password)
    for key, value in data.redis_directives:
        text = set_directive(text, key, value)
    return set_save_points(text, list(data.redis.get("save", [])))


def redis(ctx: StepContext) -> StepResult:
    adapters = ctx.adapters
    fs = ctx.fs
    conf_path = get_registry().redis.get("config", "/etc/redis/redis.conf")
    warnings: list[str] = []

    installed = adapters.apt.install(["redis-server"])
    if installed.failed:
        return StepResult.from_receipt(installed, "redis install")

    backup = f"{conf_path}.backup"
    if fs.exists(conf_path) and not fs.exists(backup):
        fs.copy(conf_path, backup)
        logger.info("✓ Created backup of original Redis configuration")

    original = fs.read_text(conf_path) or ""
    fs.write_text(conf_path, configure_redis_text(original, ctx.config.redis_password), mode=0o640)
    ctx.runner.run(["chown", "redis:redis", conf_path])
    logger.info("✓ Redis configuration applied")

    if adapters.redis.check_config(conf_path).failed:
        warnings.append("redis configuration test failed")

    started = adapters.systemd.start_and_enable("redis-server")
    if started.failed:
        return StepResult.from_receipt(started, "redis-server start")

    password = ctx.config.redis_password
    pong = ctx.probe.wait_ready(
        ServiceDescriptor(
            name="Redis",
            probe=lambda: adapters.redis.ping(password),
            max_attempts=PING_ATTEMPTS,
            interval=PING_INTERVAL,
        )
    )
    if pong.ready:
        logger.info("✓ Redis is responding to authenticated PING")
    else:
        warnings.append(pong.message)

    return StepResult.success("redis configured", warnings)
