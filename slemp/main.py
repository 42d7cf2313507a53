"""
S-LEMP — CLI entrypoint.

Usage:
    slemp --help
    sudo slemp install [-n] [--php-version 8.4] [--queue-driver redis]
    sudo slemp remove
    sudo slemp ssl --domain example.com --email admin@example.com
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from slemp import __version__
from slemp.core.observability.logging_config import setup_logging
from slemp.ui.cli.prompts import CONTEXT_SETTINGS, Group


@click.group(cls=Group, context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="slemp")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to a settings YAML (default: /etc/slemp/settings.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    settings_path: str | None,
) -> None:
    """S-LEMP — LEMP + Laravel host provisioner for Ubuntu."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["settings_path"] = Path(settings_path) if settings_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("SLEMP_LOG_LEVEL", "INFO")

    setup_logging(
        level=level,
        log_file=os.environ.get("SLEMP_LOG_FILE"),
        log_file_level=os.environ.get("SLEMP_LOG_FILE_LEVEL"),
    )


# ── Register sub-commands from slemp/ui/cli/ ─────────────────────

from slemp.ui.cli.install import install  # noqa: E402
from slemp.ui.cli.remove import remove  # noqa: E402
from slemp.ui.cli.ssl import ssl  # noqa: E402

cli.add_command(install)
cli.add_command(remove)
cli.add_command(ssl)


if __name__ == "__main__":
    cli()
