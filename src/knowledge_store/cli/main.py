"""Main CLI entry point for knowledge-store."""  # pragma: no cover

from knowledge_store.cli.app import app  # pragma: no cover

# Register commands
from knowledge_store.cli.commands import (  # noqa: F401  # pragma: no cover
    db,
    mcp,
    status,
    tool,
)

if __name__ == "__main__":  # pragma: no cover
    app()
