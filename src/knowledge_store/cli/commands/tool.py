"""CLI tool commands for knowledge-store.

Every command calls its MCP tool with output_format="json" and prints the result.
"""

import json
import sys
from typing import Annotated, Any, Awaitable, Callable, List, Optional

import typer
from fastmcp.exceptions import ToolError

from knowledge_store.cli.app import app
from knowledge_store.cli.commands.command_utils import run_with_store
from knowledge_store.mcp.tools import delete_item as mcp_delete_item
from knowledge_store.mcp.tools import get_tags as mcp_get_tags
from knowledge_store.mcp.tools import list_items as mcp_list_items
from knowledge_store.mcp.tools import retrieve_item as mcp_retrieve_item
from knowledge_store.mcp.tools import search_advanced as mcp_search_advanced
from knowledge_store.mcp.tools import search_items as mcp_search_items
from knowledge_store.mcp.tools import store_batch as mcp_store_batch
from knowledge_store.mcp.tools import store_item as mcp_store_item
from knowledge_store.services.exceptions import KnowledgeStoreError

tool_app = typer.Typer()
app.add_typer(tool_app, name="tool", help="Access to MCP tools via CLI")


# --- Shared helpers ---


def _print_json(result: Any) -> None:
    """Print a result as formatted JSON."""
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))


def _run_tool(func: Callable[[], Awaitable[Any]]) -> None:
    """Run a tool call against the store and print its JSON result.

    Store and tool errors print ``Error: ...`` to stderr and exit with code 1.
    """
    try:
        result = run_with_store(func)
    except (ToolError, KnowledgeStoreError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    _print_json(result)


def _read_stdin(what: str) -> str:
    if sys.stdin.isatty():  # pragma: no cover
        typer.echo(f"No {what} provided. Pass it as an option or pipe it to stdin.", err=True)
        raise typer.Exit(1)
    return sys.stdin.read()


# --- Commands ---


@tool_app.command()
def store(
    item_id: Annotated[str, typer.Argument(metavar="ID", help="Unique id of the item")],
    title: Annotated[str, typer.Option(help="Title of the item")],
    content: Annotated[
        Optional[str],
        typer.Option(help="Body of the item. If not provided, content is read from stdin."),
    ] = None,
    tags: Annotated[
        Optional[List[str]], typer.Option("--tag", help="Tag to apply (repeatable)")
    ] = None,
):
    """Store an item, replacing any item with the same id.

    Examples:

    knowledge-store tool store note-1 --title "First note" --content "Hello" --tag ideas
    echo "Hello" | knowledge-store tool store note-1 --title "First note"
    """
    if content is None:
        content = _read_stdin("content")

    _run_tool(
        lambda: mcp_store_item(
            id=item_id, title=title, content=content, tags=tags, output_format="json"
        )
    )


@tool_app.command("store-batch")
def store_batch(
    file: Annotated[
        Optional[typer.FileText],
        typer.Option("--file", help="JSON file with a list of items. Defaults to stdin."),
    ] = None,
):
    """Store a JSON list of items in one transaction.

    Each item is an object with id, title, content and optional tags.
    """
    raw = file.read() if file is not None else _read_stdin("items")
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: invalid JSON: {e}", err=True)
        raise typer.Exit(1)
    if not isinstance(items, list):
        typer.echo("Error: expected a JSON list of items", err=True)
        raise typer.Exit(1)

    _run_tool(lambda: mcp_store_batch(items=items, output_format="json"))


@tool_app.command()
def retrieve(
    item_id: Annotated[str, typer.Argument(metavar="ID", help="Id of the item")],
):
    """Fetch an item by id."""
    _run_tool(lambda: mcp_retrieve_item(id=item_id, output_format="json"))


@tool_app.command()
def search(
    query: Annotated[str, typer.Argument(help="Full-text query")],
    limit: Annotated[Optional[int], typer.Option(help="Maximum number of results")] = None,
):
    """Ranked full-text search.

    Examples:

    knowledge-store tool search "python AND async"
    knowledge-store tool search '"exact phrase"' --limit 5
    """
    _run_tool(lambda: mcp_search_items(query=query, limit=limit, output_format="json"))


@tool_app.command("search-advanced")
def search_advanced(
    query: Annotated[str, typer.Argument(help="Full-text query")],
    limit: Annotated[Optional[int], typer.Option(help="Maximum number of results")] = None,
    tags: Annotated[
        Optional[List[str]], typer.Option("--tag", help="Match items with any of these tags")
    ] = None,
    date_from: Annotated[
        Optional[str],
        typer.Option("--from", help="Updated on or after, eg. '2024-01-01', '2 days ago'"),
    ] = None,
    date_to: Annotated[Optional[str], typer.Option("--to", help="Updated on or before")] = None,
):
    """Ranked search filtered by tags and an updated-at date range."""
    _run_tool(
        lambda: mcp_search_advanced(
            query=query,
            limit=limit,
            tags=tags,
            date_from=date_from,
            date_to=date_to,
            output_format="json",
        )
    )


@tool_app.command("list")
def list_items(
    limit: Annotated[Optional[int], typer.Option(help="Page size")] = None,
    offset: Annotated[int, typer.Option(help="Number of items to skip")] = 0,
):
    """List items, most recently updated first."""
    _run_tool(lambda: mcp_list_items(limit=limit, offset=offset, output_format="json"))


@tool_app.command()
def delete(
    item_id: Annotated[str, typer.Argument(metavar="ID", help="Id of the item")],
):
    """Delete an item by id."""
    _run_tool(lambda: mcp_delete_item(id=item_id, output_format="json"))


@tool_app.command()
def tags():
    """List every tag in use."""
    _run_tool(lambda: mcp_get_tags(output_format="json"))
