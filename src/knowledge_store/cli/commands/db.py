"""Database maintenance commands for knowledge-store CLI."""

import typer
from fastmcp.exceptions import ToolError
from rich.console import Console

from knowledge_store.cli.app import app
from knowledge_store.cli.commands.command_utils import run_with_store
from knowledge_store.cli.commands.status import human_size
from knowledge_store.mcp.tools import optimize_db
from knowledge_store.services.exceptions import KnowledgeStoreError

console = Console()


@app.command()
def optimize() -> None:
    """Checkpoint the write-ahead log, refresh statistics and compact the search index."""
    try:
        report = run_with_store(lambda: optimize_db(output_format="json"))
    except (ToolError, KnowledgeStoreError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]Database optimization completed[/green] "
        f"({human_size(report['size_before'])} -> {human_size(report['size_after'])})"
    )
