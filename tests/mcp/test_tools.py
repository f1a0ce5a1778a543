"""Tests for the MCP tools, called directly as the server would call them."""

import pytest
from fastmcp.exceptions import ToolError

from knowledge_store.mcp.container import get_container, set_container
from knowledge_store.mcp.tools import (
    delete_item,
    get_stats,
    get_tags,
    list_items,
    optimize_db,
    retrieve_item,
    search_advanced,
    search_items,
    store_batch,
    store_item,
)


@pytest.mark.asyncio
async def test_store_item(mcp_container):
    result = await store_item(id="note-1", title="First", content="hello world", tags=["a"])
    assert result == 'Successfully stored item "First" with ID: note-1'

    assert await store_item(id="note-2", title="Second", content="x", quiet=True) == "✓ Stored"


@pytest.mark.asyncio
async def test_store_item_json(mcp_container):
    result = await store_item(
        id="note-1", title="First", content="body", tags="b, a", output_format="json"
    )
    assert result["id"] == "note-1"
    assert result["tags"] == ["a", "b"]
    assert result["created_at"] == result["updated_at"]


@pytest.mark.asyncio
async def test_store_item_invalid_input(mcp_container):
    with pytest.raises(ToolError, match="title"):
        await store_item(id="x", title="", content="body")


@pytest.mark.asyncio
async def test_store_batch(mcp_container):
    items = [
        {"id": "a", "title": "A", "content": "alpha"},
        {"id": "b", "title": "B", "content": "beta", "tags": ["t"]},
    ]
    assert await store_batch(items=items) == "Successfully stored 2 items in batch"
    assert await store_batch(items=items, quiet=True) == "✓ Saved 2 entries"

    result = await store_batch(items=items, output_format="json")
    assert result["count"] == 2
    assert result["items"][0]["updated_at"] == result["items"][1]["updated_at"]


@pytest.mark.asyncio
async def test_store_batch_invalid_item(mcp_container):
    with pytest.raises(ToolError, match=r"items\[1\]"):
        await store_batch(items=[{"id": "a", "title": "A", "content": ""}, {"id": "b"}])

    assert await retrieve_item(id="a") == 'Item with ID "a" not found'


@pytest.mark.asyncio
async def test_retrieve_item(mcp_container):
    await store_item(id="x", title="Title", content="Body text", tags=["b", "a"])

    text = await retrieve_item(id="x")
    assert text.startswith("**Title**\n\nBody text\n\n*Tags: a, b*\n*Created: ")
    assert "*Updated: " in text

    result = await retrieve_item(id="x", output_format="json")
    assert result["found"] is True
    assert result["content"] == "Body text"


@pytest.mark.asyncio
async def test_retrieve_item_not_found(mcp_container):
    assert await retrieve_item(id="missing") == 'Item with ID "missing" not found'
    assert await retrieve_item(id="missing", output_format="json") == {
        "id": "missing",
        "found": False,
    }


@pytest.mark.asyncio
async def test_retrieve_item_without_tags(mcp_container):
    await store_item(id="x", title="Title", content="Body")
    assert "*Tags: none*" in await retrieve_item(id="x")


@pytest.mark.asyncio
async def test_search_items(mcp_container):
    await store_item(id="x", title="Match", content="hello " + "a" * 300, tags=["t"])

    text = await search_items(query="hello")
    assert text.startswith('Found 1 item(s) matching "hello":\n\n**Match** (ID: x)\n')
    assert "..." in text
    assert "*Tags: t*" in text

    assert await search_items(query="hello", quiet=True) == "✓ Found 1 entries"
    assert await search_items(query="nothing") == 'No items found matching query: "nothing"'
    assert await search_items(query="nothing", quiet=True) == "✓ 0 results"


@pytest.mark.asyncio
async def test_search_items_json(mcp_container):
    await store_item(id="x", title="Match", content="hello")
    await store_item(id="y", title="Also", content="hello there")

    result = await search_items(query="hello", limit=1, output_format="json")
    assert result["query"] == "hello"
    assert result["count"] == 1
    assert result["results"][0]["score"] is not None


@pytest.mark.asyncio
async def test_search_items_separates_results(mcp_container):
    await store_item(id="x", title="One", content="shared")
    await store_item(id="y", title="Two", content="shared")

    text = await search_items(query="shared")
    assert text.count("\n\n---\n\n") == 1


@pytest.mark.asyncio
async def test_search_items_bad_query(mcp_container):
    with pytest.raises(ToolError, match="Invalid search query"):
        await search_items(query='"unbalanced')

    with pytest.raises(ToolError):
        await search_items(query="   ")


@pytest.mark.asyncio
async def test_search_advanced(mcp_container):
    await store_item(id="x", title="Tagged", content="report", tags=["keep"])
    await store_item(id="y", title="Other", content="report", tags=["keeper"])

    text = await search_advanced(query="report", tags=["keep"])
    assert text.startswith("Advanced search found 1 item(s):")
    assert "(ID: x)" in text
    assert "(ID: y)" not in text

    assert await search_advanced(query="report", tags=["none"], quiet=True) == "✓ 0 results"
    assert (
        await search_advanced(query="report", tags=["none"])
        == 'No items found matching advanced query: "report"'
    )

    result = await search_advanced(
        query="report", date_from="1 day ago", date_to="2999-01-01", output_format="json"
    )
    assert result["count"] == 2


@pytest.mark.asyncio
async def test_search_advanced_bad_dates(mcp_container):
    with pytest.raises(ToolError):
        await search_advanced(query="x", date_from="2024-03-01", date_to="2024-01-01")


@pytest.mark.asyncio
async def test_list_items(mcp_container):
    assert await list_items() == "No items found"

    await store_item(id="a", title="A", content="b" * 200)
    await store_item(id="b", title="B", content="second")

    text = await list_items()
    assert text.startswith("Listing 2 item(s):\n\n**B** (ID: b)\nsecond\n*Updated: ")
    assert "b" * 150 + "..." in text

    result = await list_items(limit=1, offset=1, output_format="json")
    assert [item["id"] for item in result["items"]] == ["a"]

    with pytest.raises(ToolError, match="offset"):
        await list_items(offset=-1)


@pytest.mark.asyncio
async def test_delete_item(mcp_container):
    await store_item(id="x", title="T", content="c")

    assert await delete_item(id="x") == "Successfully deleted item with ID: x"
    assert await delete_item(id="x") == 'Item with ID "x" not found'
    assert await delete_item(id="x", output_format="json") == {"id": "x", "deleted": False}


@pytest.mark.asyncio
async def test_get_tags_and_stats(mcp_container):
    assert await get_tags() == "No tags found"

    await store_item(id="x", title="T", content="c", tags=["b", "a"])

    assert await get_tags() == "2 tag(s): a, b"
    assert await get_tags(output_format="json") == {"tags": ["a", "b"]}

    text = await get_stats()
    assert "Items: 1" in text
    assert "Tags: 2" in text

    stats = await get_stats(output_format="json")
    assert stats["item_count"] == 1
    assert stats["size_on_disk"] > 0


@pytest.mark.asyncio
async def test_optimize_db(mcp_container):
    await store_item(id="x", title="T", content="c")

    assert await optimize_db() == "Database optimization completed"
    report = await optimize_db(output_format="json")
    assert report["size_after"] > 0


def test_container_not_initialized():
    set_container(None)
    with pytest.raises(RuntimeError):
        get_container()
