"""
Dataverse MCP Server

A Model Context Protocol server exposing create, read, update, delete, query and
relationship operations against the Microsoft Dataverse Web API.
"""

__version__ = "0.1.0"

from .main import main

__all__ = ["main"]
