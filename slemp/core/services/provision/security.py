"""
Edge steps — UFW firewall and the Certbot client.

The firewall is reset before any rule is added, so a re-run never
stacks duplicate rules. Certbot is only installed here; certificates
are issued separately with ``slemp ssl``.
"""

from __future__ import annotations

import logging

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult

logger = logging.getLogger(__name__)

UFW_DEFAULTS = "/etc/default/ufw"


def enable_ipv6(text: str) -> str:
    return text.replace("IPV6=no", "IPV6=yes")


def firewall(ctx: StepContext) -> StepResult:
    ufw = ctx.adapters.ufw
    rules = get_registry().firewall

    if not ufw.is_available():
        logger.info("Installing UFW firewall...")
        installed = ctx.adapters.apt.install(["ufw"])
        if installed.failed:
            return StepResult.from_receipt(installed, "ufw install")

    plan = [
        (ufw.reset, "reset UFW"),
        (lambda: ufw.default("deny", "incoming"), "default deny incoming"),
        (lambda: ufw.default("allow", "outgoing"), "default allow outgoing"),
    ]
    plan += [(lambda r=rule: ufw.limit(r), f"limit {rule}") for rule in rules.get("limit", [])]
    plan += [(lambda r=rule: ufw.allow(r), f"allow {rule}") for rule in rules.get("allow", [])]

    for action, what in plan:
        receipt = action()
        if receipt.failed:
            return StepResult.from_receipt(receipt, what)

    current = ctx.fs.read_text(UFW_DEFAULTS)
    if current is not None and "IPV6=no" in current:
        ctx.fs.write_text(UFW_DEFAULTS, enable_ipv6(current))

    enabled = ufw.enable()
    if enabled.failed:
        return StepResult.from_receipt(enabled, "enable UFW")
    if not ufw.is_active():
        return StepResult.failure("UFW firewall failed to activate")

    return StepResult.success("firewall active (ssh rate-limited, 22/80/443 open)")


def certbot(ctx: StepContext) -> StepResult:
    adapters = ctx.adapters
    runner = ctx.runner

    if adapters.certbot.is_available():
        logger.info("✓ Certbot is already installed %s", adapters.certbot.version())
        return StepResult.skip("certbot already installed")

    if runner.which("snap") and adapters.systemd.is_active("snapd"):
        logger.info("Using snap for Certbot installation...")
        core = runner.run(["snap", "install", "core"])
        if core.ok and runner.run(["snap", "install", "--classic", "certbot"]).ok:
            runner.run(["ln", "-sf", "/snap/bin/certbot", "/usr/bin/certbot"])
            return StepResult.success("certbot installed via snap")
        logger.warning("Snap installation failed, trying apt...")

    adapters.apt.update()
    installed = adapters.apt.install(get_registry().certbot_packages)
    if installed.failed:
        return StepResult.from_receipt(installed, "certbot install")
    return StepResult.success("certbot installed via apt")
