"""
Exceptions module.

This module defines custom exceptions used throughout the bridge.
"""

from typing import Any, Optional


class FatalError(Exception):
    """
    A fatal error that should not be caught and converted to a ToolResult.

    These errors represent unrecoverable startup conditions, such as a language
    server that cannot be spawned, and terminate the bridge process.
    """
    pass


class ToolArgumentError(ValueError):
    """Arguments of a tool call failed validation before any query was issued."""

    def __init__(self, tool_name: str, message: str, path: Optional[Any] = None):
        super().__init__(f"Invalid arguments for {tool_name}: {message}")
        self.tool_name = tool_name
        self.path = list(path) if path else []


class UnknownToolError(LookupError):
    """No tool is registered under the requested name."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name
