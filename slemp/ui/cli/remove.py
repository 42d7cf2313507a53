"""
CLI command for teardown: ``slemp remove``.
"""

from __future__ import annotations

import json
import sys

import click

from slemp.ui.cli import resolve_settings
from slemp.ui.cli.prompts import CONTEXT_SETTINGS, ClickPrompter, Command


@click.command("remove", cls=Command, context_settings=CONTEXT_SETTINGS)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print the report as JSON.")
@click.pass_context
def remove(ctx: click.Context, as_json: bool) -> None:
    """Remove the stack, its data and Laravel helper files."""
    from slemp.core.use_cases.remove import run_remove

    settings = resolve_settings(ctx)
    result = run_remove(settings, ClickPrompter())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    report = result.report
    assert report is not None
    if report.cancelled:
        click.echo("Removal cancelled.")
        return

    click.secho(
        f"🧹 Removed {report.removed}, already absent {report.absent}, failed {report.failed}",
        fg="yellow" if report.failed else "green",
        bold=True,
    )
    if report.kept:
        click.echo(f"   Kept: {', '.join(report.kept)}")
    if report.residual and not report.residual.clean:
        click.secho("   Some components remain; see the warnings above.", fg="yellow")
