"""Error reporting shared by the tools."""

from contextlib import contextmanager
from typing import Iterator

from fastmcp.exceptions import ToolError
from loguru import logger

from knowledge_store.services.exceptions import KnowledgeStoreError


@contextmanager
def tool_errors(tool_name: str) -> Iterator[None]:
    """Report store errors to the client as tool errors."""
    try:
        yield
    except KnowledgeStoreError as e:
        logger.warning(f"Tool {tool_name} failed: {e}")
        raise ToolError(str(e)) from e
