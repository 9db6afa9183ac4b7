"""List the builtin functions."""

import json

import click

from zy.builtins import register_all_builtins
from zy.functions import FunctionCategory, FunctionRegistry


@click.command()
@click.option(
    "--category",
    type=click.Choice([c.value for c in FunctionCategory]),
    default=None,
    help="Only list builtins in this category.",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print the builtin documentation as JSON.",
)
def builtins(category: str | None, as_json: bool):
    """List builtin functions with their curried signatures."""
    if not FunctionRegistry.list_all():
        register_all_builtins()

    if as_json:
        selected = FunctionCategory(category) if category else None
        click.echo(json.dumps(FunctionRegistry.export_documentation(selected), indent=2))
        return

    shown = 0
    categories = [FunctionCategory(category)] if category else list(FunctionCategory)

    for cat in categories:
        definitions = FunctionRegistry.list_by_category(cat)
        if not definitions:
            continue

        shown += len(definitions)
        click.echo(click.style(cat.value, bold=True))
        for func_def in sorted(definitions, key=lambda f: f.name):
            click.echo(f"  {func_def.signature:<36} {func_def.description}")
        click.echo()

    click.echo(f"{shown} builtins")
