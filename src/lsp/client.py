"""
LSP client for code navigation features.

Provides a streamlined interface over a language server's stdio connection for
querying code intelligence like definitions, references, hover information and
document outlines.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from src.semcode.exceptions import FatalError
from .server import LSPServer
from .models import (
    LspHoverResult, LspLocation, LspSymbol, OpenStatus,
    parse_locations, parse_symbols, path_to_uri,
)

# Configure logging
logger = logging.getLogger(__name__)

# JSON-RPC error code for requests the client does not implement
METHOD_NOT_FOUND = -32601

# Map LSP message types to Python logging levels
LEVEL_MAP = {1: logging.ERROR, 2: logging.WARNING, 3: logging.INFO, 4: logging.DEBUG}

LANGUAGE_IDS = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
}


class LSPRequestError(ValueError):
    """Error response returned by the language server for a request."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.error_message = message
        self.data = data


class LSPClient:
    """Client for Language Server Protocol.

    Provides core code navigation capabilities:
    - Go to definition
    - Find references
    - Get hover information
    - Document outline (symbols)
    - Document synchronization (open notifications)

    Requests are pipelined over the single connection and matched to responses
    by id, so any number of callers may await queries concurrently.
    """

    def __init__(self, server: LSPServer, root_path: str):
        """Initialize LSP client.

        Args:
            server: Manager of the language server process to talk to
            root_path: Project root that relative paths are resolved against
        """
        self._server = server
        self.root_path = os.path.abspath(root_path)

        # State tracking
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._reader_task: Optional[asyncio.Task] = None
        self._pending_requests: Dict[int, asyncio.Future] = {}
        self._next_request_id = 1

        # URIs announced with textDocument/didOpen; never shrinks
        self._open_files: Set[str] = set()
        # didOpen announcements in progress, keyed by URI
        self._opening: Dict[str, asyncio.Task] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def open_files(self) -> frozenset:
        return frozenset(self._open_files)

    async def start(self) -> bool:
        """Spawn the language server and start reading its messages."""
        if not await self._server.start():
            return False
        self._start_reader_task()
        return True

    def resolve_path(self, file_path: str) -> str:
        """Resolve a path against the project root and normalize it."""
        return os.path.normpath(os.path.join(self.root_path, file_path))

    def uri_for(self, file_path: str) -> str:
        return path_to_uri(self.resolve_path(file_path))

    async def initialize(self) -> Optional[Dict[str, Any]]:
        """Perform LSP initialization handshake.

        Does nothing once a handshake has succeeded. A failed handshake raises and
        leaves the client uninitialized, so the next query tries again.
        """
        if self._initialized:
            return None

        async with self._init_lock:
            if self._initialized:
                return None

            root_uri = path_to_uri(self.root_path)
            params = {
                "processId": os.getpid(),
                "clientInfo": {
                    "name": "semantic-code-mcp",
                    "version": "1.0.0",
                },
                "rootUri": root_uri,
                "capabilities": {
                    "textDocument": {
                        "synchronization": {
                            "dynamicRegistration": True,
                            "willSave": False,
                            "willSaveWaitUntil": False,
                            "didSave": False,
                        },
                        "completion": {
                            "dynamicRegistration": True,
                            "completionItem": {"snippetSupport": False},
                        },
                        "hover": {
                            "dynamicRegistration": True,
                            "contentFormat": ["markdown", "plaintext"],
                        },
                        "definition": {"dynamicRegistration": True},
                        "references": {"dynamicRegistration": True},
                        "documentSymbol": {
                            "dynamicRegistration": True,
                            "hierarchicalDocumentSymbolSupport": True,
                        },
                    },
                    "workspace": {"workspaceFolders": True},
                },
                "workspaceFolders": [{"uri": root_uri, "name": "root"}],
            }

            logger.info("Initializing LSP connection...")
            try:
                result = await self.send_request("initialize", params)
            except Exception as e:
                logger.error(f"Failed to initialize LSP: {e}")
                raise

            # Log available capabilities
            capabilities = (result or {}).get("capabilities", {})
            if capabilities:
                logger.info(f"Server capabilities received: {', '.join(capabilities.keys())}")
            else:
                logger.warning("Server returned no capabilities")

            await self.send_notification("initialized", {})
            self._initialized = True
            logger.info("LSP server initialized successfully")
            return result

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def ensure_open(self, file_path: str) -> OpenStatus:
        """Announce a document to the server the first time it is queried.

        Reading the file is best effort: on failure a warning is logged, nothing
        is sent, and DEGRADED is returned so later queries proceed regardless.
        """
        full_path = self.resolve_path(file_path)
        uri = path_to_uri(full_path)
        if uri in self._open_files:
            return OpenStatus.ALREADY_OPEN

        # Concurrent callers for the same file share one in-flight open and
        # return only once didOpen has been sent
        opening = self._opening.get(uri)
        first = opening is None
        if first:
            opening = asyncio.create_task(self._open_document(file_path, full_path, uri))
            self._opening[uri] = opening
            opening.add_done_callback(lambda _: self._opening.pop(uri, None))

        status = await asyncio.shield(opening)
        if not first and status is OpenStatus.OPENED:
            return OpenStatus.ALREADY_OPEN
        return status

    async def _open_document(self, file_path: str, full_path: str, uri: str) -> OpenStatus:
        try:
            text = await asyncio.to_thread(Path(full_path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to open file: {file_path}: {e}")
            return OpenStatus.DEGRADED

        await self.send_notification("textDocument/didOpen", {
            "textDocument": {
                "uri": uri,
                "languageId": self.language_id(full_path),
                "version": 1,
                "text": text,
            }
        })
        self._open_files.add(uri)

        logger.debug(f"Opened document {uri}")
        return OpenStatus.OPENED

    @staticmethod
    def language_id(file_path: str) -> str:
        return LANGUAGE_IDS.get(os.path.splitext(file_path)[1].lower(), "plaintext")

    async def _position_params(self, file_path: str, line: int, character: int) -> Dict[str, Any]:
        await self._ensure_initialized()
        await self.ensure_open(file_path)
        return {
            "textDocument": {"uri": self.uri_for(file_path)},
            "position": {"line": line, "character": character},
        }

    async def get_definition(
        self, file_path: str, line: int, character: int
    ) -> Optional[List[LspLocation]]:
        """Find definition locations for the symbol at a zero-based position.

        Returns None when the server has no definition to report.
        """
        params = await self._position_params(file_path, line, character)
        result = await self.send_request("textDocument/definition", params)
        return parse_locations(result)

    async def get_references(
        self, file_path: str, line: int, character: int
    ) -> Optional[List[LspLocation]]:
        """Find references to the symbol at a zero-based position.

        The declaration itself is always included in the results.
        """
        params = await self._position_params(file_path, line, character)
        params["context"] = {"includeDeclaration": True}
        result = await self.send_request("textDocument/references", params)
        return parse_locations(result)

    async def get_hover(
        self, file_path: str, line: int, character: int
    ) -> Optional[LspHoverResult]:
        params = await self._position_params(file_path, line, character)
        result = await self.send_request("textDocument/hover", params)
        return LspHoverResult.from_dict(result)

    async def get_document_symbols(self, file_path: str) -> Optional[List[LspSymbol]]:
        """Get the symbol outline of a document.

        Servers answer with either hierarchical DocumentSymbols or flat
        SymbolInformation entries; both are returned as LspSymbol variants.
        """
        await self._ensure_initialized()
        await self.ensure_open(file_path)
        result = await self.send_request(
            "textDocument/documentSymbol",
            {"textDocument": {"uri": self.uri_for(file_path)}},
        )
        return parse_symbols(result)

    async def send_request(self, method: str, params: Optional[Dict[str, Any]]) -> Any:
        """Send a request to the LSP server and wait for the response.

        Returns:
            The ``result`` member of the response

        Raises:
            LSPRequestError: If the server answered with an error
            ConnectionError: If the connection closed before a response arrived
        """
        request_id = self._next_request_id
        self._next_request_id += 1

        future = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future

        message: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params

        logger.debug(f"Sending request {request_id}: {method}")
        try:
            await self._send_message(message)
            response = await future
        finally:
            self._pending_requests.pop(request_id, None)

        if "error" in response:
            error = response["error"] or {}
            raise LSPRequestError(
                method,
                error.get("code", 0),
                error.get("message", "Unknown error"),
                error.get("data"),
            )
        return response.get("result")

    async def send_notification(self, method: str, params: Optional[Dict[str, Any]]) -> None:
        """Send notification without expecting a response."""
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self._send_message(message)

    async def _send_message(self, message: Dict[str, Any]) -> None:
        """Encode and send a message to the server."""
        content_bytes = json.dumps(message).encode("utf-8")
        header_bytes = f"Content-Length: {len(content_bytes)}\r\n\r\n".encode("ascii")

        writer = self._server.writer
        writer.write(header_bytes + content_bytes)
        await writer.drain()

    def _start_reader_task(self) -> None:
        """Launch background task for message processing."""
        self._reader_task = asyncio.create_task(self._read_loop(), name="lsp-reader")

    async def _read_loop(self) -> None:
        reader = self._server.reader
        try:
            while True:
                message = await self._read_message(reader)
                if message is None:
                    logger.warning("Connection closed by server")
                    break
                await self._handle_message(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Fatal error in reader task: {e}")
        finally:
            logger.info("Reader task exiting")
            self._fail_pending(ConnectionError("Language server connection closed"))

    async def _read_message(self, reader: asyncio.StreamReader) -> Optional[Dict[str, Any]]:
        """Read one Content-Length framed message; None at end of stream."""
        while True:
            content_length = None
            while True:
                line = await reader.readline()
                if not line:
                    return None
                line = line.strip()
                if not line:
                    break
                name, _, value = line.decode("ascii", errors="replace").partition(":")
                if name.strip().lower() == "content-length":
                    try:
                        content_length = int(value.strip())
                    except ValueError:
                        pass

            if content_length is None:
                logger.error("No valid Content-Length header found")
                continue

            try:
                content = await reader.readexactly(content_length)
            except asyncio.IncompleteReadError:
                return None

            try:
                return json.loads(content.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.error(f"Invalid JSON in message content: {content[:100]}...")

    async def _handle_message(self, message: Dict[str, Any]) -> None:
        """Route incoming messages to appropriate handlers."""
        # Handle responses to pending requests
        if "id" in message and ("result" in message or "error" in message) and "method" not in message:
            request_id = message["id"]
            future = self._pending_requests.get(request_id)
            if future is not None and not future.done():
                logger.debug(f"Received response for request {request_id}")
                future.set_result(message)
            else:
                logger.warning(f"Received response for unknown request ID: {request_id}")

        # Handle server requests, which must be answered
        elif "method" in message and "id" in message:
            await self._answer_server_request(message)

        # Handle server notifications
        elif "method" in message:
            self._log_notification(message["method"], message.get("params") or {})

        else:
            logger.warning(f"Received unrecognized message format: {list(message.keys())}")

    async def _answer_server_request(self, message: Dict[str, Any]) -> None:
        method = message["method"]
        params = message.get("params") or {}
        response: Dict[str, Any] = {"jsonrpc": "2.0", "id": message["id"]}

        if method in ("window/workDoneProgress/create", "client/registerCapability",
                      "client/unregisterCapability"):
            response["result"] = None
        elif method == "workspace/configuration":
            response["result"] = [None for _ in params.get("items", [])]
        else:
            logger.warning(f"Received server request (not implemented): {method}")
            response["error"] = {"code": METHOD_NOT_FOUND, "message": f"Unhandled method {method}"}

        await self._send_message(response)

    def _log_notification(self, method: str, params: Dict[str, Any]) -> None:
        if method == "window/logMessage":
            level = LEVEL_MAP.get(params.get("type", 3), logging.INFO)
            logger.log(level, f"[LSP Server] {params.get('message', '')}")

        elif method == "window/showMessage":
            level = LEVEL_MAP.get(params.get("type", 3), logging.INFO)
            logger.log(level, f"[LSP Message] {params.get('message', '')}")

        elif method == "$/progress":
            value = params.get("value") or {}
            kind = value.get("kind")
            title = value.get("title", "")
            message = value.get("message", "")
            percentage = value.get("percentage")
            percentage_str = f" ({percentage}%)" if percentage is not None else ""

            if kind == "begin":
                logger.info(f"[LSP Progress] Started: {title}")
            elif kind == "report":
                logger.info(f"[LSP Progress] {message or title}{percentage_str}")
            elif kind == "end":
                logger.info(f"[LSP Progress] Completed: {message or title}")

        else:
            logger.debug(f"Received notification: {method}")

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending_requests.values():
            if not future.done():
                future.set_exception(error)

    async def close(self) -> None:
        """Terminate the LSP session and clean up resources.

        Outstanding requests are not cancelled gracefully; they fail with
        ConnectionError once the connection is gone.
        """
        logger.info("Shutting down LSP session")

        if self._initialized and self._server.is_running():
            try:
                await asyncio.wait_for(self.send_request("shutdown", None), 1.0)
                await self.send_notification("exit", None)
            except Exception as e:
                logger.debug(f"Error during shutdown handshake: {e}")

        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None

        self._fail_pending(ConnectionError("LSP client closed"))
        await self._server.shutdown()
        self._initialized = False
        logger.info("LSP session shut down")


async def create_lsp_client(command: List[str], root_path: str) -> LSPClient:
    """Spawn a language server and return a client connected to it.

    Initialization is deferred to the first query.

    Raises:
        FatalError: If the language server cannot be started
    """
    server = LSPServer(command, cwd=os.path.abspath(root_path))
    client = LSPClient(server, root_path)
    if not await client.start():
        raise FatalError(f"Failed to start language server: {' '.join(command)}")
    logger.info(f"Client connected to language server for {client.root_path}")
    return client
