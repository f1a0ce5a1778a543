"""Status command for knowledge-store CLI."""

import typer
from fastmcp.exceptions import ToolError
from rich.console import Console
from rich.table import Table

from knowledge_store.cli.app import app
from knowledge_store.cli.commands.command_utils import run_with_store
from knowledge_store.mcp.container import get_container
from knowledge_store.mcp.tools import get_stats
from knowledge_store.services.exceptions import KnowledgeStoreError

console = Console()


def human_size(size: int) -> str:
    """Format a byte count for display.

    Examples:
        >>> human_size(512)
        '512 B'
        >>> human_size(2048)
        '2.0 KB'
    """
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"  # pragma: no cover


@app.command()
def status() -> None:
    """Show item and tag counts, store size and location."""

    async def _status() -> tuple[str, dict]:
        stats = await get_stats(output_format="json")
        return str(get_container().store.handle.db_path), stats

    try:
        db_path, stats = run_with_store(_status)
    except (ToolError, KnowledgeStoreError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="knowledge-store", show_header=False)
    table.add_column("Property", style="bold cyan")
    table.add_column("Value")
    table.add_row("Database", db_path)
    table.add_row("Items", str(stats["item_count"]))
    table.add_row("Tags", str(stats["tag_count"]))
    table.add_row("Size on disk", human_size(stats["size_on_disk"]))
    console.print(table)
