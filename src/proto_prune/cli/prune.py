from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from proto_prune.core.errors import PruneError
from proto_prune.core.identifier_set import RuleIdentifierSet
from proto_prune.core.loader import dump_schema, load_schema, write_schema
from proto_prune.core.pruner import Pruner
from proto_prune.models import Schema

console = Console(stderr=True)


def _render_summary(before: Schema, after: Schema) -> None:
    table = Table(show_lines=False)
    table.add_column("")
    table.add_column("before")
    table.add_column("after")
    table.add_row("files", str(len(before.files)), str(len(after.files)))
    table.add_row("types", str(sum(1 for _ in before.types())), str(sum(1 for _ in after.types())))
    table.add_row("services", str(sum(1 for _ in before.services())), str(sum(1 for _ in after.services())))
    console.print(table)


def prune(
    schema_path: Annotated[str, typer.Argument(help="Path to the schema JSON file.")],
    include: Annotated[
        list[str] | None,
        typer.Option("--include", "-i", help="Type, member (Type#member) or prefix (pkg.*) to keep."),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-e", help="Type, member or prefix to leave out of the roots."),
    ] = None,
    output: Annotated[str | None, typer.Option("--output", "-o", help="Write the pruned schema here.")] = None,
    keep_empty_files: Annotated[
        bool,
        typer.Option(
            "--keep-empty-files",
            envvar="PROTO_PRUNE_KEEP_EMPTY_FILES",
            help="Keep files whose types and services were all pruned.",
        ),
    ] = False,
) -> None:
    """Prune a schema down to the selected types and members plus their dependencies."""
    try:
        identifier_set = RuleIdentifierSet(include or [], exclude or [])
        schema = load_schema(schema_path)
        pruned = Pruner(schema, identifier_set).prune(keep_empty_files=keep_empty_files)
    except (PruneError, ValueError, FileNotFoundError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from None

    identifier_set.warn_unused()

    if output is None:
        typer.echo(dump_schema(pruned))
    else:
        write_schema(pruned, output)
        console.print(f"[green]Wrote[/green] pruned schema to {output}")
    _render_summary(schema, pruned)
