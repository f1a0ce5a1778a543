from typing import Optional

import typer

from knowledge_store import __version__
from knowledge_store.config import init_cli_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        typer.echo(f"knowledge-store version: {__version__}")
        raise typer.Exit()


app = typer.Typer(name="knowledge-store", help="Local knowledge item store with ranked search")


@app.callback()
def app_callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Knowledge store - local items with ranked full-text search."""
    # The mcp command sets up its own logging with a stderr sink
    if ctx.invoked_subcommand != "mcp":
        init_cli_logging()
