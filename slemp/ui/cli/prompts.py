"""
Click glue shared by the command modules: the terminal prompter and
command classes that report usage errors with exit code 1.
"""

from __future__ import annotations

import sys

import click

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class ClickPrompter:
    """Prompter backed by ``click.prompt``."""

    def ask(self, text: str, default: str = "", show_default: bool = True) -> str:
        return click.prompt(text, default=default, show_default=show_default and bool(default))

    def ask_secret(self, text: str) -> str:
        return click.prompt(text, default="", hide_input=True, show_default=False)

    def show(self, text: str = "") -> None:
        click.echo(text)


def stdin_is_interactive() -> bool:
    return sys.stdin.isatty()


class Command(click.Command):
    """A command whose usage errors exit 1 instead of click's 2."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


class Group(click.Group):
    """Group counterpart of :class:`Command` (unknown sub-commands included)."""

    command_class = Command

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise

    def resolve_command(self, ctx: click.Context, args: list[str]):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise
