"""Interactive mode: read, evaluate and print one line at a time."""

import logging

import click

from zy.errors import ZyError
from zy.session import Session
from zy.values import render

logger = logging.getLogger(__name__)


@click.command()
@click.pass_obj
def repl(config):
    """Start an interactive session. End of input exits."""
    stream = click.get_text_stream("stdin")
    session = Session(config=config, stdin=stream)

    while True:
        click.echo(config.prompt, nl=False)
        line = stream.readline()
        if not line:
            click.echo()
            break

        line = line.strip()
        if not line:
            continue

        try:
            result = session.run(line)
        except ZyError:
            continue
        except Exception:
            logger.exception("Unexpected failure evaluating %r", line)
            continue

        output = f"=> {render(result)}"
        click.echo(click.style(output, fg="bright_black") if config.color else output)
