"""
MCP server exposing the tool shell over stdio.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from src.lsp.client import create_lsp_client
from src.semcode.config import BridgeConfig
from src.semcode.exceptions import UnknownToolError
from src.semcode.messages import ToolResult
from src.semcode.shell import ToolShell
from src.semcode.structured_logger import StructuredLogger
from src.semcode.tools import Tool

# Configure logging
logger = logging.getLogger(__name__)

SERVER_NAME = "semantic-code-mcp"


def tool_definition(tool: Tool) -> types.Tool:
    return types.Tool(name=tool.name, description=tool.description(), inputSchema=tool.input_schema())


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=result.content)],
        isError=not result.success,
    )


def create_server(shell: ToolShell) -> Server:
    """Create an MCP server whose tools are the shell's registered tools."""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [tool_definition(tool) for tool in shell.list_tools()]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        result = await shell.call(name, arguments)
        return to_call_tool_result(result)

    # The SDK's call_tool wrapper turns every exception into an isError result.
    # Unknown names are rejected in front of it so the host gets a JSON-RPC
    # error with the METHOD_NOT_FOUND code instead.
    dispatch_call = server.request_handlers[types.CallToolRequest]

    async def call_tool_request(request: types.CallToolRequest) -> types.ServerResult:
        try:
            shell.get_tool(request.params.name)
        except UnknownToolError as e:
            logger.warning(str(e))
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(e))) from e
        return await dispatch_call(request)

    server.request_handlers[types.CallToolRequest] = call_tool_request
    return server


async def serve(config: BridgeConfig) -> None:
    """Run the bridge until the host closes stdin.

    Raises:
        FatalError: If the language server cannot be started
    """
    client = await create_lsp_client(config.server_command, config.project_root)
    try:
        shell = ToolShell(
            client,
            config.project_root,
            session_id=uuid.uuid4().hex[:12],
            structured_logger=StructuredLogger(),
        )
        server = create_server(shell)

        async with stdio_server() as (read_stream, write_stream):
            logger.info("Semantic Code MCP Server (LSP-based) running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await client.close()
