"""
Configuration for the bridge.

Settings come from defaults, then environment variables (a .env file is loaded
when the ``src`` package is imported), then command-line flags.
"""

import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "typescript-language-server"
DEFAULT_SERVER_ARGS = ["--stdio"]


def default_server_command(project_root: str) -> List[str]:
    """Prefer a server installed in the project's node_modules, else PATH."""
    local = os.path.join(project_root, "node_modules", ".bin", DEFAULT_SERVER_NAME)
    if os.path.isfile(local):
        return [local] + DEFAULT_SERVER_ARGS
    return [DEFAULT_SERVER_NAME] + DEFAULT_SERVER_ARGS


@dataclass
class BridgeConfig:
    """Resolved settings for one bridge process."""
    project_root: str
    server_command: List[str] = field(default_factory=list)
    log_level: str = "INFO"

    def __post_init__(self):
        self.project_root = os.path.abspath(self.project_root)
        if not self.server_command:
            self.server_command = default_server_command(self.project_root)

    @classmethod
    def load(
        cls,
        project_root: Optional[str] = None,
        lsp_command: Optional[str] = None,
        log_level: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BridgeConfig":
        """Build a config, letting explicit arguments override the environment.

        Args:
            project_root: Root that tool paths are resolved against
            lsp_command: Shell-style command line for the language server
            log_level: Logging level name
            environ: Environment to read, defaults to os.environ
        """
        env = os.environ if environ is None else environ

        root = project_root or env.get("SEMCODE_PROJECT_ROOT") or os.getcwd()
        command_line = lsp_command or env.get("SEMCODE_LSP_COMMAND")
        command = shlex.split(command_line) if command_line else []
        level = (log_level or env.get("LOG_LEVEL") or "INFO").upper()

        config = cls(project_root=root, server_command=command, log_level=level)
        logger.debug(f"Loaded configuration: {config}")
        return config
