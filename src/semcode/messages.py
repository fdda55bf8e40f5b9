"""
Result classes returned by tools.
"""

from typing import Optional

ERROR_PREFIX = "Error: "


class ToolResult:
    """Text outcome of a tool call, flagged as success or failure."""

    def __init__(
        self,
        content: str,
        success: bool,
        error: Optional[Exception] = None,
        tool_name: Optional[str] = None,
    ):
        self.content = content
        self.success = success
        self.error = error
        self.tool_name = tool_name

    @classmethod
    def failure(cls, error: Exception, tool_name: Optional[str] = None) -> "ToolResult":
        """Build the uniform error result for an exception raised by a tool."""
        return cls(content=f"{ERROR_PREFIX}{error}", success=False, error=error, tool_name=tool_name)

    def __repr__(self) -> str:
        return f"ToolResult(success={self.success!r}, content={self.content!r})"
