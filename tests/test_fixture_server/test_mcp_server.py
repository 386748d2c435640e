"""Tests for the mock MCP server."""
from __future__ import annotations

from typing import Any

import pytest
from mcp.server.fastmcp import FastMCP

from src.fixture_server import mcp_server


def _texts(result: Any) -> list[str]:
    """Text of every content block returned by ``FastMCP.call_tool``."""
    # Newer FastMCP releases return (content, structured) for typed tools.
    content = result[0] if isinstance(result, tuple) else result
    return [block.text for block in content]


class TestMockMcpServer:
    def test_mcp_is_fastmcp_instance(self):
        assert isinstance(mcp_server.mcp, FastMCP)

    def test_mcp_name(self):
        assert mcp_server.mcp.name == "MockMcpServer"

    def test_mock_search_registered(self):
        tools = mcp_server.mcp._tool_manager._tools
        assert list(tools) == ["mock.search"]

    @pytest.mark.asyncio
    async def test_mock_search_echoes_query_as_single_text_block(self):
        result = await mcp_server.mcp.call_tool("mock.search", {"query": "hello"})
        assert _texts(result) == ["mock:hello"]

    @pytest.mark.asyncio
    async def test_mock_search_without_query(self):
        result = await mcp_server.mcp.call_tool("mock.search", {})
        assert _texts(result) == ["mock:"]

    @pytest.mark.asyncio
    async def test_listed_tool_description(self):
        tools = await mcp_server.mcp.list_tools()
        assert [(t.name, t.description) for t in tools] == [
            ("mock.search", "Return a mock search result")
        ]
