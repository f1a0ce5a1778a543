"""CLI commands for knowledge-store."""

from knowledge_store.cli.commands import db, mcp, status, tool

__all__ = ["db", "mcp", "status", "tool"]
