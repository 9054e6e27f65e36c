from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from proto_prune.core.loader import load_schema
from proto_prune.models import MessageType

console = Console()


def types(
    schema_path: Annotated[str, typer.Argument(help="Path to the schema JSON file.")],
) -> None:
    """List every type and service declared in a schema."""
    try:
        schema = load_schema(schema_path)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from None

    table = Table(show_lines=False)
    table.add_column("kind")
    table.add_column("name")
    table.add_column("members")
    for t in schema.types():
        if isinstance(t, MessageType):
            members = len(t.fields_and_one_of_fields()) + len(t.extension_fields)
        else:
            members = len(t.constants)
        table.add_row(t.kind, str(t.name), str(members))
    for service in schema.services():
        table.add_row("service", str(service.name), str(len(service.rpcs)))
    console.print(table)
    console.print(f"({table.row_count} rows)")
