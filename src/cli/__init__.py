"""Main CLI application module.

This module provides the main entry point for the db-sync CLI. The
application has a single command, so its options are given directly:

    db-sync --remote-host db.example.com --databases "app audit"
"""

import sys

import click
import typer
from typer.core import TyperCommand

from .commands import sync


class SyncCommand(TyperCommand):
    """Typer command that prints usage errors to standard output.

    Unknown flags and unparsable values still exit with click's usage-error
    code (2), but the usage text and error go to stdout instead of stderr.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.show(file=sys.stdout)
            ctx.exit(e.exit_code)


# Create the main CLI application
app = typer.Typer(
    help="🐘 db-sync - Pull remote PostgreSQL databases into a local container",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command(name="sync", cls=SyncCommand)(sync)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
