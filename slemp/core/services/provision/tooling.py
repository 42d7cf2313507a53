"""
Developer tooling steps — Composer and Node.js.
"""

from __future__ import annotations

import logging
import re

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult

logger = logging.getLogger(__name__)

INSTALLER_PATH = "/tmp/composer-setup.php"
_NODE_MAJOR_RE = re.compile(r"v?(\d+)")


def composer(ctx: StepContext) -> StepResult:
    runner = ctx.runner
    conf = get_registry().composer
    target = conf.get("target", "/usr/local/bin/composer")

    if runner.which("composer"):
        logger.info("Composer already installed, updating...")
        updated = runner.run(["composer", "self-update"], env={"COMPOSER_ALLOW_SUPERUSER": "1"})
        if updated.failed:
            return StepResult.warning("failed to update Composer")
        return StepResult.success("Composer updated")

    warnings: list[str] = []
    php = ctx.adapters.php(ctx.config.php)

    signature = runner.run(["curl", "-fsSL", conf["signature_url"]])
    downloaded = runner.run(["curl", "-fsSL", conf["installer_url"], "-o", INSTALLER_PATH])
    if downloaded.failed:
        return StepResult.from_receipt(downloaded, "Composer installer download")

    actual = php.eval(f"echo hash_file('sha384', '{INSTALLER_PATH}');")
    expected = signature.output.strip() if signature.ok else ""
    if not expected or actual.output.strip() != expected:
        warnings.append("Composer installer signature verification failed")
    else:
        logger.info("✓ Composer installer signature verified")

    built = runner.run([php.binary, INSTALLER_PATH, "--install-dir=/tmp"])
    runner.run(["rm", "-f", INSTALLER_PATH])
    if built.failed:
        return StepResult.from_receipt(built, "Composer installation")

    moved = runner.run(["install", "-m", "0755", "/tmp/composer.phar", target])
    if moved.failed:
        return StepResult.from_receipt(moved, f"install composer to {target}")
    runner.run(["rm", "-f", "/tmp/composer.phar"])

    if not runner.which("composer"):
        return StepResult.failure("Composer installation verification failed")
    return StepResult.success(f"Composer installed to {target}", warnings)


def nodejs(ctx: StepContext) -> StepResult:
    runner = ctx.runner
    conf = get_registry().nodejs
    warnings: list[str] = []

    source_list = conf.get("source_list", "/etc/apt/sources.list.d/nodesource.list")
    if ctx.fs.exists(source_list):
        logger.info("✓ NodeSource repository already exists")
    else:
        url = conf["setup_url"].replace("{node}", ctx.settings.node_version)
        setup = runner.run(["curl", "-fsSL", url])
        if setup.failed:
            return StepResult.from_receipt(setup, "NodeSource setup download")
        added = runner.run(["bash", "-"], input=setup.output)
        if added.failed:
            return StepResult.from_receipt(added, "NodeSource repository")
        logger.info("✓ NodeSource repository added")

    installed = ctx.adapters.apt.install(["nodejs"])
    if installed.failed:
        return StepResult.from_receipt(installed, "nodejs install")

    if not (runner.which("node") and runner.which("npm")):
        return StepResult.failure("Node.js installation verification failed")

    version = runner.run(["node", "--version"]).output.strip()
    match = _NODE_MAJOR_RE.match(version)
    if match and int(match.group(1)) < int(conf.get("min_major", 18)):
        warnings.append(f"Node.js {version} might be too old for some Laravel features")

    return StepResult.success(f"Node.js {version or 'installed'}", warnings)
