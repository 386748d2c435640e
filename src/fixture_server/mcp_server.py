"""Mock MCP server used by the service-under-test's MCP integration tests.

Exposes a single ``mock.search`` tool over stdio that echoes the query back,
so MCP wiring can be exercised without a real tool provider.
"""
from __future__ import annotations

from mcp.server.fastmcp import FastMCP


# ---------------------------------------------------------------------------
# MCP application
# ---------------------------------------------------------------------------
mcp = FastMCP("MockMcpServer")


@mcp.tool(name="mock.search", description="Return a mock search result")
def mock_search(query: str = "") -> str:
    """Echo *query* back; FastMCP wraps the string in one text content block."""
    return f"mock:{query}"


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    mcp.run()
