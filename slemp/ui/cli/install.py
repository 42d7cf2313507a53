"""
CLI command for provisioning: ``slemp install``.

Thin wrapper over ``slemp.core.use_cases.install``.
"""

from __future__ import annotations

import json
import sys

import click

from slemp.core.models.config import PhpVersion, QueueDriver
from slemp.ui.cli import resolve_settings
from slemp.ui.cli.prompts import CONTEXT_SETTINGS, ClickPrompter, Command, stdin_is_interactive


@click.command("install", cls=Command, context_settings=CONTEXT_SETTINGS)
@click.option(
    "--non-interactive",
    "-n",
    is_flag=True,
    help="Use defaults and generated passwords; ask nothing.",
)
@click.option(
    "--php-version",
    type=click.Choice([v.value for v in PhpVersion]),
    default=None,
    help="PHP version (default 8.3).",
)
@click.option(
    "--queue-driver",
    type=click.Choice([d.value for d in QueueDriver]),
    default=None,
    help="Laravel queue driver (default database).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    non_interactive: bool,
    php_version: str | None,
    queue_driver: str | None,
    as_json: bool,
) -> None:
    """Install Nginx, MariaDB, PHP-FPM, Redis and the Laravel tooling."""
    from slemp.core.use_cases.install import InstallOptions, run_install

    settings = resolve_settings(ctx)
    if not non_interactive and not stdin_is_interactive():
        non_interactive = True

    options = InstallOptions(
        non_interactive=non_interactive,
        php_version=PhpVersion(php_version) if php_version else None,
        queue_driver=QueueDriver(queue_driver) if queue_driver else None,
    )

    try:
        result = run_install(options, settings, ClickPrompter())
    except KeyboardInterrupt:
        click.secho("\n❌ Installation interrupted", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.cancelled:
        click.echo("Installation cancelled.")
        return
    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    report = result.report
    verification = result.verification
    if report is not None and verification is not None:
        color = "green" if verification.failed_critical == 0 else "yellow"
        click.secho(
            f"✅ Installation {verification.outcome}: "
            f"{report.succeeded} ok, {report.warnings} warnings, {report.skipped} skipped",
            fg=color,
            bold=True,
        )
