"""
MCP Tools Package.

Each module provides a register_*_tools() function to register tools with FastMCP.
"""

from wpreader.tools.reader import register_reader_tools

__all__ = ["register_reader_tools"]
