"""MCP server for knowledge-store."""
