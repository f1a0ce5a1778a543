"""MCP server command."""

from loguru import logger

from knowledge_store.cli.app import app
from knowledge_store.config import init_mcp_logging


@app.command()
def mcp() -> None:  # pragma: no cover
    """Run the MCP server over stdio."""
    init_mcp_logging()

    # Import tools to register them with the server
    import knowledge_store.mcp.tools  # noqa: F401
    from knowledge_store.mcp.server import mcp as mcp_server

    logger.info("Starting MCP server on stdio")
    mcp_server.run(transport="stdio")
