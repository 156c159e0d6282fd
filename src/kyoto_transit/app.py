"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` from here, not from server.py.
"""

from mcp.server.fastmcp import FastMCP

# Initialize the MCP server
mcp = FastMCP(
    "Kyoto Transit",
    instructions=(
        "Kyoto city bus route planning - nearby stops, single-line itineraries with fares, "
        "and less crowded alternatives based on live vehicle occupancy"
    ),
)
