"""Zy CLI entry point."""

import logging

import click

from zy.config import ZyConfig


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log debug output.")
@click.option(
    "--max-depth",
    type=int,
    default=None,
    help="Evaluation depth reported as a stack overflow (default: $ZY_MAX_DEPTH or 3000).",
)
@click.option("--no-color", is_flag=True, default=False, help="Print diagnostics without color.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, max_depth: int | None, no_color: bool):
    """Zy, a small functional language. Starts the REPL when no command is given."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ZyConfig.from_env()
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if max_depth is not None:
        config.max_depth = max_depth
    if no_color:
        config.color = False

    ctx.obj = config

    if ctx.invoked_subcommand is None:
        ctx.invoke(repl)


# Register subcommands
from zy.cli.builtins_cmd import builtins  # noqa: E402
from zy.cli.repl_cmd import repl  # noqa: E402
from zy.cli.run_cmd import run  # noqa: E402

cli.add_command(run)
cli.add_command(repl)
cli.add_command(builtins)
