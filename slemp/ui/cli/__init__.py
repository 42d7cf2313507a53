"""Command-line interface modules."""

from __future__ import annotations

import sys

import click

from slemp.core.config.loader import ConfigError, load_settings
from slemp.core.config.settings import Settings


def resolve_settings(ctx: click.Context) -> Settings:
    """Load host settings for the invoked command; exit 1 if invalid."""
    try:
        return load_settings((ctx.obj or {}).get("settings_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
