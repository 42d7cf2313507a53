"""
Web tier steps — Nginx and the project's document root and site.

The site file is always rewritten in full and the sites-enabled link
is replaced, so re-running the step converges to the same state.
"""

from __future__ import annotations

import logging

from slemp.core.data import get_registry
from slemp.core.models.step import StepContext, StepResult

logger = logging.getLogger(__name__)

DEFAULT_WEB_FILES = ("/var/www/index.nginx-debian.html", "/var/www/index.html")
DEFAULT_SITE = "/etc/nginx/sites-enabled/default"
DEPLOY_README = "DEPLOY_LARAVEL_HERE.md"


def nginx(ctx: StepContext) -> StepResult:
    adapters = ctx.adapters
    fs = ctx.fs

    installed = adapters.apt.install(["nginx"])
    if installed.failed:
        return StepResult.from_receipt(installed, "nginx install")

    started = adapters.systemd.start_and_enable("nginx")
    if started.failed:
        return StepResult.from_receipt(started, "nginx start")

    tested = adapters.nginx.test_config()
    if tested.failed:
        return StepResult.from_receipt(tested, "nginx configuration test")
    logger.info("✓ Nginx configuration is valid")

    if fs.is_dir("/var/www/html"):
        fs.remove_contents("/var/www/html")
    for path in DEFAULT_WEB_FILES:
        fs.remove(path)

    fs.ensure_dir(ctx.settings.project_root)
    ctx.runner.run(["chown", "root:root", ctx.settings.project_root])
    ctx.runner.run(["chmod", "755", ctx.settings.project_root])

    return StepResult.success("nginx installed and started")


def render_site_config(ctx: StepContext) -> str:
    config = ctx.config
    return get_registry().render(
        "nginx_site.conf",
        domain=config.domain,
        project_path=config.project_path,
        fpm_socket=config.fpm_socket_path,
    )


def project_scaffold(ctx: StepContext) -> StepResult:
    """Project directory, deployment notes and the Nginx site."""
    config = ctx.config
    settings = ctx.settings
    fs = ctx.fs
    owner = f"{settings.web_user}:{settings.web_group}"

    fs.ensure_dir(config.project_path, mode=0o755)
    fs.write_text(
        f"{config.project_path}/{DEPLOY_README}",
        get_registry().render(
            "deploy_readme.md",
            project_path=config.project_path,
            web_user=settings.web_user,
        ),
    )
    ctx.runner.run(["chown", "-R", owner, config.project_path])
    logger.info("✓ Project directory created: %s", config.project_path)

    fs.write_text(config.site_config_path, render_site_config(ctx))
    fs.symlink(config.site_config_path, config.site_enabled_path)
    fs.remove(DEFAULT_SITE)
    logger.info("✓ Nginx site configuration created and enabled: %s", config.project_name)

    tested = ctx.adapters.nginx.test_config()
    if tested.failed:
        return StepResult.from_receipt(tested, "nginx configuration test")
    reloaded = ctx.adapters.systemd.reload("nginx")
    if reloaded.failed:
        return StepResult.from_receipt(reloaded, "nginx reload")

    return StepResult.success(f"site {config.domain} enabled")
