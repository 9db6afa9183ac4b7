"""Batch mode: run a program file."""

from pathlib import Path

import click

from zy.errors import ZyError
from zy.session import Session


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("args", nargs=-1)
@click.pass_obj
def run(config, file: Path, args: tuple[str, ...]):
    """Run FILE, binding the remaining ARGS as a list of strings to `args`."""
    source = file.read_text(encoding="utf-8")
    session = Session(config=config, args=list(args))

    try:
        session.run(source)
    except ZyError:
        # Already reported as a diagnostic
        raise SystemExit(1)
