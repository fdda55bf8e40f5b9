"""
Tests for the MCP surface of the bridge.

Handlers are invoked directly through the low-level server's request table,
without a stdio transport.
"""

import asyncio
import logging
import os
import shutil
import tempfile
import unittest

from mcp import types
from mcp.shared.exceptions import McpError

from src.semcode.messages import ToolResult
from src.semcode.server import create_server, to_call_tool_result
from src.semcode.shell import ToolShell
from stub_client import StubClient

# Configure logging
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.DEBUG)


class TestMcpServer(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.source = os.path.join(self.temp_dir, "index.ts")
        with open(self.source, "w") as f:
            f.write("function main() {\n  add(1, 2);\n}\n")

        self.shell = ToolShell(StubClient(self.temp_dir), self.temp_dir)
        self.server = create_server(self.shell)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def list_tools(self):
        handler = self.server.request_handlers[types.ListToolsRequest]
        result = asyncio.run(handler(types.ListToolsRequest(method="tools/list")))
        return result.root.tools

    def test_list_tools(self):
        tools = self.list_tools()

        self.assertEqual(
            [tool.name for tool in tools],
            ["get_definition", "get_references", "search_in_file", "check_function_call"],
        )
        definition = tools[0]
        self.assertIn("search_in_file", definition.description)
        self.assertEqual(definition.inputSchema["required"], ["filePath", "line", "character"])

        check = tools[3]
        self.assertEqual(
            check.inputSchema["required"],
            ["sourceFile", "sourceFunction", "targetFile", "targetFunction"],
        )

    def test_call_tool(self):
        handler = self.server.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(
                name="search_in_file",
                arguments={"filePath": self.source, "query": "add"},
            ),
        )

        result = asyncio.run(handler(request)).root

        self.assertFalse(result.isError)
        self.assertTrue(result.content[0].text.startswith("Found 1 matches"))

    def test_unknown_tool_is_method_not_found(self):
        handler = self.server.request_handlers[types.CallToolRequest]
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="nope", arguments={}),
        )

        with self.assertRaises(McpError) as cm:
            asyncio.run(handler(request))

        self.assertEqual(cm.exception.error.code, types.METHOD_NOT_FOUND)
        self.assertEqual(cm.exception.error.message, "Unknown tool: nope")


class TestToCallToolResult(unittest.TestCase):

    def test_success(self):
        result = to_call_tool_result(ToolResult(content="No definition found.", success=True))

        self.assertFalse(result.isError)
        self.assertEqual(result.content[0].type, "text")
        self.assertEqual(result.content[0].text, "No definition found.")

    def test_failure(self):
        result = to_call_tool_result(ToolResult.failure(ConnectionError("Language server connection closed")))

        self.assertTrue(result.isError)
        self.assertEqual(result.content[0].text, "Error: Language server connection closed")


if __name__ == "__main__":
    unittest.main()
