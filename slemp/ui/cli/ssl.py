"""
CLI command for certificates: ``slemp ssl``.
"""

from __future__ import annotations

import sys

import click

from slemp.ui.cli import resolve_settings
from slemp.ui.cli.prompts import CONTEXT_SETTINGS, Command


@click.command("ssl", cls=Command, context_settings=CONTEXT_SETTINGS)
@click.option("--domain", required=True, help="Domain served by the Laravel site.")
@click.option("--email", required=True, help="Contact address for Let's Encrypt.")
@click.pass_context
def ssl(ctx: click.Context, domain: str, email: str) -> None:
    """Issue a Let's Encrypt certificate through certbot's nginx plugin."""
    from slemp.core.use_cases.ssl import issue_certificate

    result = issue_certificate(domain, email, resolve_settings(ctx))
    if result.failed:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"🔒 {result.message}", fg="green", bold=True)
