"""
PHP steps — runtime packages, extension repair, OPcache and the FPM pool.

Extension detection goes through the PHP adapter (``php -m``) with the
two special cases it knows about: ``mysql`` is satisfied by any MySQL
driver, ``opcache`` is asked of PHP itself. Missing critical extensions
are reinstalled for a bounded number of rounds; what still fails after
that is reported as a warning, not an abort.
"""

from __future__ import annotations

import logging

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult
from slemp.core.reliability.probe import ServiceDescriptor

logger = logging.getLogger(__name__)

SOCKET_ATTEMPTS = 8
SOCKET_INTERVAL = 2.0
RELOAD_SETTLE = 5.0
REPAIR_WAIT = 5.0


def _pkg(version: str, ext: str) -> str:
    return f"php{version}-{ext}"


# ── php-runtime ─────────────────────────────────────────────────────


def php_runtime(ctx: StepContext) -> StepResult:
    adapters = ctx.adapters
    apt = adapters.apt
    version = ctx.config.php
    data = get_registry()

    if apt.is_installed("apache2"):
        logger.info("Apache detected. Removing...")
        adapters.systemd.stop("apache2")
        adapters.systemd.disable("apache2")
        apt.purge(["apache2", "libapache2-mod-php*"])
        apt.autoremove()

    apt.install(["software-properties-common"])
    added = apt.add_ppa(data.php.get("ppa", "ppa:ondrej/php"))
    if added.failed:
        return StepResult.from_receipt(added, "PHP repository")
    updated = apt.update()
    if updated.failed:
        return StepResult.from_receipt(updated, "apt-get update")

    # Not running yet on a fresh host.
    adapters.systemd.stop(ctx.config.php_fpm_service)

    packages = data.php_core_packages(version)
    installed = apt.install(packages)
    if installed.failed:
        return StepResult.from_receipt(installed, f"PHP {version} packages")

    return StepResult.success(f"PHP {version} installed ({len(packages)} packages)")


# ── php-extensions ──────────────────────────────────────────────────


def missing_extensions(ctx: StepContext, extensions: list[str]) -> list[str]:
    """Extensions from ``extensions`` that PHP does not report as loaded."""
    php = ctx.adapters.php(ctx.config.php)
    modules = php.modules()
    return [ext for ext in extensions if not php.extension_loaded(ext, modules)]


def _install_optional(ctx: StepContext, warnings: list[str]) -> None:
    apt = ctx.adapters.apt
    for package in get_registry().php_optional_packages(ctx.config.php):
        if apt.install([package]).ok:
            logger.info("✓ Installed optional package: %s", package)
        else:
            warnings.append(f"optional package not available: {package}")


def _repair_critical(ctx: StepContext, warnings: list[str]) -> list[str]:
    data = get_registry()
    version = ctx.config.php
    rounds = int(data.php.get("repair_rounds", 2))
    critical = data.critical_extensions

    missing: list[str] = []
    for attempt in range(rounds + 1):
        logger.info("Checking PHP extensions (attempt %d/%d)...", attempt + 1, rounds + 1)
        missing = missing_extensions(ctx, critical)
        if not missing:
            logger.info("✓ All critical PHP extensions are loaded")
            return []
        if attempt == rounds:
            break
        logger.info("Attempting to install missing extensions: %s", ", ".join(missing))
        for ext in missing:
            ctx.adapters.apt.install([_pkg(version, ext)])
        ctx.probe.sleep(REPAIR_WAIT)

    warnings.append(
        f"extensions still missing after {rounds} repair rounds: {', '.join(missing)}"
    )
    return missing


def _verify_redis_extension(ctx: StepContext, warnings: list[str]) -> None:
    php = ctx.adapters.php(ctx.config.php)
    probe = "exit(extension_loaded('redis') ? 0 : 1);"
    if php.eval(probe).ok:
        logger.info("✓ Redis extension verified")
        return
    logger.warning("Redis extension verification failed, reinstalling...")
    ctx.adapters.apt.install([_pkg(ctx.config.php, "redis")])
    if not php.eval(probe).ok:
        warnings.append("redis extension still not loaded; may need manual configuration")


def write_opcache_config(ctx: StepContext) -> list[str]:
    """Write the OPcache ini for FPM and CLI, plus the blacklist file."""
    version = ctx.config.php
    data = get_registry()
    blacklist = f"/etc/php/{version}/opcache-blacklist.txt"
    ini = data.render("opcache.ini", blacklist=blacklist)

    written = []
    for sapi in ("fpm", "cli"):
        path = f"/etc/php/{version}/{sapi}/conf.d/10-opcache.ini"
        ctx.fs.write_text(path, ini)
        written.append(path)
    if not ctx.fs.exists(blacklist):
        ctx.fs.write_text(blacklist, data.template("opcache-blacklist.txt"))
        written.append(blacklist)

    ctx.adapters.systemd.restart(ctx.config.php_fpm_service)
    return written


def _verify_opcache(ctx: StepContext, warnings: list[str]) -> None:
    php = ctx.adapters.php(ctx.config.php)
    if php.extension_loaded("opcache"):
        if php.opcache_enabled():
            logger.info("✓ OPcache is enabled and active")
            return
        logger.warning("OPcache extension is loaded but not enabled, configuring...")
        write_opcache_config(ctx)
        return

    logger.warning("OPcache extension verification failed, reinstalling...")
    ctx.adapters.apt.install([_pkg(ctx.config.php, "opcache")])
    write_opcache_config(ctx)
    if not php.extension_loaded("opcache"):
        warnings.append("OPcache still not loaded; may need manual configuration")


def php_extensions(ctx: StepContext) -> StepResult:
    warnings: list[str] = []
    _install_optional(ctx, warnings)
    missing = _repair_critical(ctx, warnings)
    _verify_redis_extension(ctx, warnings)
    _verify_opcache(ctx, warnings)

    if missing:
        return StepResult.warning(
            f"{len(missing)} critical extension(s) missing", warnings=warnings
        )
    return StepResult.success("PHP extensions verified", warnings)


# ── php-fpm-pool ────────────────────────────────────────────────────


def render_pool_config(ctx: StepContext) -> str:
    return get_registry().render(
        "php_fpm_pool.conf",
        project_name=ctx.config.project_name,
        fpm_socket=ctx.config.fpm_socket_path,
        web_user=ctx.settings.web_user,
        web_group=ctx.settings.web_group,
    )


def php_fpm_pool(ctx: StepContext) -> StepResult:
    config = ctx.config
    settings = ctx.settings
    fs = ctx.fs
    systemd = ctx.adapters.systemd
    php = ctx.adapters.php(config.php)
    service = config.php_fpm_service
    warnings: list[str] = []

    fs.ensure_dir("/var/log/php")
    ctx.runner.run(["chown", f"{settings.web_user}:{settings.web_group}", "/var/log/php"])

    fs.write_text(config.pool_config_path, render_pool_config(ctx))
    if php.test_pool(config.pool_config_path).failed:
        warnings.append("PHP-FPM pool configuration syntax check failed")
    else:
        logger.info("✓ PHP-FPM pool configuration syntax is valid")

    systemd.start(service)
    systemd.enable(service)
    systemd.reload(service)

    version = php.version_check()
    if version.failed:
        return StepResult.from_receipt(version, f"PHP {config.php} verification")

    socket = ServiceDescriptor(
        name="PHP-FPM socket",
        probe=lambda: fs.is_socket(config.fpm_socket_path),
        max_attempts=SOCKET_ATTEMPTS,
        interval=SOCKET_INTERVAL,
    )
    if ctx.probe.wait_ready(socket).ready:
        logger.info("✓ PHP-FPM socket created: %s", config.fpm_socket_path)
        return StepResult.success("PHP-FPM pool active", warnings)

    logger.warning("PHP-FPM socket not found after initial wait, reloading pool...")
    if not systemd.is_active(service):
        return StepResult.failure(
            f"{service} is not running (check: journalctl -u {service} --no-pager -l)",
            warnings=warnings,
        )
    systemd.reload(service)
    ctx.probe.sleep(RELOAD_SETTLE)
    if fs.is_socket(config.fpm_socket_path):
        logger.info("✓ PHP-FPM socket created after reload: %s", config.fpm_socket_path)
        return StepResult.success("PHP-FPM pool active", warnings)

    return StepResult.failure(
        f"PHP-FPM socket {config.fpm_socket_path} still missing after reload",
        warnings=warnings,
    )
