"""
Tests for the LSP client against a scripted language server.

The fake server in fake_lsp_server.py speaks real Content-Length framed
JSON-RPC over stdio, so these tests exercise the whole client stack:
process management, framing, request matching and document sync.
"""

import asyncio
import logging
import os
import shutil
import sys
import tempfile
import unittest
from unittest import mock

from src.lsp.client import LSPRequestError, create_lsp_client
from src.lsp.models import OpenStatus
from src.semcode.exceptions import FatalError

# Configure logging
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.DEBUG)

FAKE_SERVER = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fake_lsp_server.py")
FAKE_SERVER_COMMAND = [sys.executable, "-u", FAKE_SERVER]

CALC_SOURCE = """export class Calculator {
  add(a: number, b: number): number {
    return a + b;
  }
}
"""


class TestLSPClient(unittest.IsolatedAsyncioTestCase):
    """End-to-end tests of LSPClient."""

    async def asyncSetUp(self):
        self.temp_dir = tempfile.mkdtemp()
        for name in ("calc.ts", "nothing.ts"):
            with open(os.path.join(self.temp_dir, name), "w") as f:
                f.write(CALC_SOURCE)

        self.client = await create_lsp_client(FAKE_SERVER_COMMAND, self.temp_dir)

    async def asyncTearDown(self):
        await self.client.close()
        shutil.rmtree(self.temp_dir)

    async def test_initialize_runs_handshake_once(self):
        results = await asyncio.gather(self.client.initialize(), self.client.initialize())

        self.assertTrue(self.client.initialized)
        handshakes = [result for result in results if result is not None]
        self.assertEqual(len(handshakes), 1)
        self.assertIn("definitionProvider", handshakes[0]["capabilities"])

        # Already initialized, nothing is sent
        self.assertIsNone(await self.client.initialize())

    async def test_queries_initialize_lazily(self):
        self.assertFalse(self.client.initialized)
        await self.client.get_definition("calc.ts", 1, 2)
        self.assertTrue(self.client.initialized)

    async def test_document_opened_once(self):
        await asyncio.gather(
            self.client.get_definition("calc.ts", 1, 2),
            self.client.get_references("calc.ts", 1, 2),
            self.client.get_document_symbols(os.path.join(self.temp_dir, "calc.ts")),
        )

        opened = await self.client.send_request("fake/openedDocuments", None)
        self.assertEqual(opened, [self.client.uri_for("calc.ts")])
        self.assertEqual(self.client.open_files, frozenset(opened))
        self.assertEqual(await self.client.ensure_open("calc.ts"), OpenStatus.ALREADY_OPEN)

    async def test_concurrent_opens_share_one_announcement(self):
        await self.client.initialize()

        with mock.patch("src.lsp.client.asyncio.to_thread", wraps=asyncio.to_thread) as to_thread:
            statuses = await asyncio.gather(*(self.client.ensure_open("calc.ts") for _ in range(5)))

        self.assertEqual(statuses.count(OpenStatus.OPENED), 1)
        self.assertEqual(statuses.count(OpenStatus.ALREADY_OPEN), 4)
        # The file is read once, off the event loop
        self.assertEqual(to_thread.call_count, 1)

        opened = await self.client.send_request("fake/openedDocuments", None)
        self.assertEqual(opened, [self.client.uri_for("calc.ts")])

    async def test_get_definition_folds_location_links(self):
        locations = await self.client.get_definition("calc.ts", 1, 2)

        self.assertEqual(len(locations), 1)
        self.assertEqual(locations[0].uri, self.client.uri_for("calc.ts"))
        self.assertEqual(locations[0].path, os.path.join(os.path.abspath(self.temp_dir), "calc.ts"))
        self.assertEqual(locations[0].range.start.line, 3)
        self.assertEqual(locations[0].range.start.character, 9)

    async def test_get_definition_null_result(self):
        self.assertIsNone(await self.client.get_definition("nothing.ts", 0, 0))

    async def test_get_references(self):
        locations = await self.client.get_references("calc.ts", 1, 2)

        self.assertEqual(len(locations), 2)
        self.assertEqual([loc.range.start.line for loc in locations], [1, 7])

    async def test_get_hover(self):
        hover = await self.client.get_hover("calc.ts", 1, 2)

        self.assertEqual(hover.contents.value, "function add(a, b)")
        self.assertEqual(hover.contents.kind, "markdown")

    async def test_get_document_symbols(self):
        symbols = await self.client.get_document_symbols("calc.ts")

        self.assertEqual([symbol.name for symbol in symbols], ["Calculator"])
        self.assertEqual(symbols[0].children[0].name, "add")
        self.assertEqual(symbols[0].children[0].identifying_position().character, 2)

    async def test_unreadable_file_is_degraded(self):
        status = await self.client.ensure_open("missing.ts")

        self.assertEqual(status, OpenStatus.DEGRADED)
        self.assertEqual(self.client.open_files, frozenset())

        # The query still goes out
        locations = await self.client.get_definition("missing.ts", 0, 0)
        self.assertEqual(len(locations), 1)
        opened = await self.client.send_request("fake/openedDocuments", None)
        self.assertEqual(opened, [])

    async def test_error_response_raises(self):
        with self.assertRaises(LSPRequestError) as cm:
            await self.client.send_request("fake/fail", {})

        self.assertEqual(cm.exception.code, -32603)
        self.assertEqual(cm.exception.error_message, "boom")
        self.assertIsInstance(cm.exception, ValueError)

    async def test_server_requests_are_answered(self):
        await self.client.initialize()

        responses = []
        for _ in range(50):
            responses = await self.client.send_request("fake/clientResponses", None)
            if responses:
                break
            await asyncio.sleep(0.05)

        self.assertEqual(len(responses), 1)
        self.assertEqual(responses[0]["id"], "progress-1")
        self.assertIn("result", responses[0])
        self.assertIsNone(responses[0]["result"])

    async def test_close_stops_server(self):
        await self.client.initialize()
        await self.client.close()

        self.assertFalse(self.client.initialized)
        self.assertFalse(self.client._server.is_running())


class TestLSPClientStartup(unittest.IsolatedAsyncioTestCase):
    """Startup and handshake failures."""

    async def asyncSetUp(self):
        self.temp_dir = tempfile.mkdtemp()

    async def asyncTearDown(self):
        shutil.rmtree(self.temp_dir)

    async def test_missing_server_is_fatal(self):
        with self.assertRaises(FatalError):
            await create_lsp_client(["semcode-no-such-language-server"], self.temp_dir)

    async def test_failed_handshake_is_retried(self):
        with mock.patch.dict(os.environ, {"FAKE_LSP_FAIL_INIT": "1"}):
            client = await create_lsp_client(FAKE_SERVER_COMMAND, self.temp_dir)

        try:
            with self.assertRaises(LSPRequestError):
                await client.initialize()
            self.assertFalse(client.initialized)

            result = await client.initialize()
            self.assertTrue(client.initialized)
            self.assertIn("capabilities", result)
        finally:
            await client.close()


if __name__ == "__main__":
    unittest.main()
