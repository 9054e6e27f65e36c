import logging
from typing import Annotated

import typer

from proto_prune.cli.describe import types
from proto_prune.cli.prune import prune

app = typer.Typer(
    name="proto-prune",
    help="Proto Prune CLI — remove unreachable types and members from a linked schema.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("prune")(prune)
app.command("types")(types)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log pruning progress.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    app()
