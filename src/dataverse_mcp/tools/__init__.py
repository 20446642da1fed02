"""
MCP Tools for Dataverse MCP Server

Record, relationship and discovery tools registered on a FastMCP server.
"""

from .registry import ToolRegistry

__all__ = ["ToolRegistry"]
