"""MCP tools for knowledge-store.

Importing this module registers all tools with the MCP server.
"""

from knowledge_store.mcp.tools.items import (
    delete_item,
    get_stats,
    get_tags,
    list_items,
    retrieve_item,
    store_batch,
    store_item,
)
from knowledge_store.mcp.tools.maintenance import optimize_db
from knowledge_store.mcp.tools.search import search_advanced, search_items

__all__ = [
    "delete_item",
    "get_stats",
    "get_tags",
    "list_items",
    "optimize_db",
    "retrieve_item",
    "search_advanced",
    "search_items",
    "store_batch",
    "store_item",
]
