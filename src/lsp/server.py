"""
LSP server manager.

Manages the lifecycle of a language server child process that speaks LSP over
its stdin/stdout. The server's stderr is treated as a log sink and its exit is
observed and logged; there is no automatic restart.
"""

import asyncio
import logging
import os
from typing import List, Optional

from .installer import check_installed

# Configure logging
logger = logging.getLogger(__name__)

# Seconds to wait for the process to exit after terminate() before killing it
TERMINATE_GRACE_PERIOD = 1.0

# stderr is read in chunks of this size; longer lines are logged in pieces
STDERR_CHUNK_SIZE = 4096
STDERR_MAX_LINE = 64 * 1024


class LSPServer:
    """Manages a language server process and exposes its stdio streams."""

    def __init__(self, command: List[str], cwd: str):
        """Initialize the LSP server manager.

        Args:
            command: Program and arguments used to launch the server
            cwd: Working directory for the server, normally the project root
        """
        self.command = list(command)
        self.cwd = cwd
        self._server_process: Optional[asyncio.subprocess.Process] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._exit_task: Optional[asyncio.Task] = None

    @property
    def process(self) -> Optional[asyncio.subprocess.Process]:
        return self._server_process

    @property
    def reader(self) -> asyncio.StreamReader:
        """Stream carrying messages from the server (its stdout)."""
        if self._server_process is None:
            raise RuntimeError("Language server is not running")
        return self._server_process.stdout

    @property
    def writer(self) -> asyncio.StreamWriter:
        """Stream carrying messages to the server (its stdin)."""
        if self._server_process is None:
            raise RuntimeError("Language server is not running")
        return self._server_process.stdin

    def is_running(self) -> bool:
        return self._server_process is not None and self._server_process.returncode is None

    async def start(self) -> bool:
        """Start the language server process.

        Returns:
            True if the process was spawned, False otherwise
        """
        if self.is_running():
            logger.info(f"Reusing existing language server (PID {self._server_process.pid})")
            return True

        if not check_installed(self.command):
            logger.error(f"Language server not available: {' '.join(self.command)}")
            return False

        # Set environment variables for better logging
        env = os.environ.copy()
        env["PYTHONUNBUFFERED"] = "1"  # Ensure Python-based servers do not buffer output

        try:
            logger.info(f"Starting language server with command: {' '.join(self.command)}")
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
                env=env,
            )
        except OSError as e:
            logger.error(f"Failed to start language server: {e}")
            return False

        self._server_process = process
        self._stderr_task = asyncio.create_task(self._pump_stderr(process), name="lsp-stderr")
        self._exit_task = asyncio.create_task(self._watch_exit(process), name="lsp-exit-watcher")

        logger.info(f"Language server process started successfully with PID {process.pid}")
        return True

    async def _pump_stderr(self, process: asyncio.subprocess.Process) -> None:
        """Forward the server's stderr into our log, one record per line.

        Reads fixed-size chunks, so line length is unbounded; lines longer than
        STDERR_MAX_LINE are logged in pieces.
        """
        pending = b""
        while True:
            chunk = await process.stderr.read(STDERR_CHUNK_SIZE)
            if not chunk:
                break
            pending += chunk
            *lines, pending = pending.split(b"\n")
            while len(pending) >= STDERR_MAX_LINE:
                lines.append(pending[:STDERR_MAX_LINE])
                pending = pending[STDERR_MAX_LINE:]
            for line in lines:
                self._log_stderr(line)
        if pending:
            self._log_stderr(pending)

    @staticmethod
    def _log_stderr(line: bytes) -> None:
        logger.warning(f"LSP Stderr: {line.decode('utf-8', errors='replace').rstrip()}")

    async def _watch_exit(self, process: asyncio.subprocess.Process) -> None:
        code = await process.wait()
        if code < 0:
            logger.warning(f"LSP Process Exited with code None and signal {-code}")
        elif code == 0:
            logger.info("LSP Process Exited with code 0 and signal None")
        else:
            logger.error(f"LSP Process Exited with code {code} and signal None")

    async def shutdown(self) -> None:
        """Stop the server and release all resources."""
        process = self._server_process
        if process is None:
            return

        logger.info("Shutting down language server")

        if process.stdin and not process.stdin.is_closing():
            process.stdin.close()

        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), TERMINATE_GRACE_PERIOD)
            except asyncio.TimeoutError:
                logger.warning("Process did not terminate gracefully, forcing kill")
                process.kill()
                await process.wait()

        for task in (self._stderr_task, self._exit_task):
            if task is None:
                continue
            try:
                await asyncio.wait_for(task, TERMINATE_GRACE_PERIOD)
            except asyncio.TimeoutError:
                task.cancel()
            except Exception as e:
                logger.error(f"Language server task {task.get_name()} failed: {e}")

        logger.info(f"Language server stopped (exit code: {process.returncode})")
