import logging
from typing import Annotated

import typer

from tzmeta.cli.inspect import inspect, uri
from tzmeta.cli.tokens import call, tokens

app = typer.Typer(
    name="tzmeta",
    help="tzmeta CLI: inspect contract metadata and explore tokens.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


app.command("inspect")(inspect)
app.command("uri")(uri)
app.command("tokens")(tokens)
app.command("call-view")(call)


def main() -> None:
    app()
