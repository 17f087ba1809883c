"""Main CLI application."""

from pathlib import Path
from typing import Annotated

import typer

from recollect.cli.commands import journal

app = typer.Typer(
    name="recollect",
    help="recollect - inspect long-term memory capture state",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration and logging for every command."""
    from recollect.logging import configure_logging

    configure_logging(level="DEBUG" if verbose else None, use_rich=True)
    ctx.obj = {"config_path": config}


journal.register(app)
