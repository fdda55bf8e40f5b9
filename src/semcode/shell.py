"""
Shell module for tool execution.

This module provides a ToolShell class that manages tool registration and
execution. It is the single outermost error boundary for tool calls: whatever a
tool raises is converted into an error-flagged ToolResult here.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from src.semcode.exceptions import FatalError, UnknownToolError
from src.semcode.messages import ToolResult
from src.semcode.resolver import CallGraphResolver
from src.semcode.structured_logger import StructuredLogger
from src.semcode.tools import (
    CheckFunctionCallTool,
    GetDefinitionTool,
    GetReferencesTool,
    SearchInFileTool,
    Tool,
    ToolContext,
)

# Configure logging
logger = logging.getLogger(__name__)


class ToolShell:
    """
    Shell for registering and executing tools.
    """

    def __init__(
        self,
        client,
        root_path: str,
        session_id: str = "default",
        structured_logger: Optional[StructuredLogger] = None,
    ):
        self._tools: Dict[str, Tool] = {}
        self._ctx = ToolContext(
            client=client,
            root_path=root_path,
            resolver=CallGraphResolver(client, root_path),
            session_id=session_id,
        )
        self._structured_logger = structured_logger

        # Register built-in tools
        self._register_builtin_tools()

    @property
    def context(self) -> ToolContext:
        return self._ctx

    def register_tool(self, tool: Tool) -> None:
        """
        Register a tool with the shell.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        name = tool.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")

        self._tools[name] = tool
        logger.debug(f"Registered tool: {name}")

    def get_tool(self, tool_name: str) -> Tool:
        """
        Get a registered tool by name.

        Raises:
            UnknownToolError: If the tool is not registered
        """
        if tool_name not in self._tools:
            raise UnknownToolError(tool_name)
        return self._tools[tool_name]

    def list_tools(self) -> List[Tool]:
        """
        Get all registered tools in registration order.
        """
        return list(self._tools.values())

    async def call(self, tool_name: str, arguments: Optional[Dict[str, Any]]) -> ToolResult:
        """
        Execute a tool with the given arguments.

        Raises:
            UnknownToolError: If the tool is not registered
            FatalError: Re-raised untouched
        """
        tool = self.get_tool(tool_name)

        started = time.monotonic()
        try:
            result = await tool.execute(self._ctx, arguments)
        except FatalError:
            raise
        except Exception as e:
            logger.error(f"Error executing tool {tool_name}: {e}", exc_info=True)
            result = ToolResult.failure(e, tool_name=tool_name)

        duration = time.monotonic() - started
        if result.success:
            logger.info(f"Tool {tool_name} succeeded in {duration:.3f}s")
        self._record(tool_name, arguments, result, duration)
        return result

    def _record(
        self, tool_name: str, arguments: Optional[Dict[str, Any]], result: ToolResult, duration: float
    ) -> None:
        if self._structured_logger is None:
            return
        self._structured_logger.record("tool_calls", {
            "session_id": self._ctx.session_id,
            "tool": tool_name,
            "arguments": arguments,
            "success": result.success,
            "duration_seconds": round(duration, 3),
        })

    def _register_builtin_tools(self) -> None:
        """
        Register built-in tools with the shell.
        """
        self.register_tool(GetDefinitionTool())
        self.register_tool(GetReferencesTool())
        self.register_tool(SearchInFileTool())
        self.register_tool(CheckFunctionCallTool())

        logger.debug(f"Registered built-in tools: {', '.join(self._tools)}")
