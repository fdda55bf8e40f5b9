"""
LSP server installation utilities.

Checks and reports on language server installation status.
"""

import logging
import os
import shutil
from typing import List

# Configure logging
logger = logging.getLogger(__name__)

# Install hints for the servers we know about, keyed by executable name
INSTALL_HINTS = {
    "typescript-language-server": "npm install typescript typescript-language-server",
    "pylsp": "pip install python-lsp-server",
    "pyright-langserver": "npm install -g pyright",
}


def is_server_installed(command: List[str]) -> bool:
    """Check if the executable of a language server command can be found.

    Accepts either a bare program name (looked up on PATH) or a path to an
    executable file.
    """
    if not command:
        return False

    program = command[0]
    if os.sep in program:
        return os.path.isfile(program) and os.access(program, os.X_OK)
    return shutil.which(program) is not None


def install_hint(command: List[str]) -> str:
    """Return a human readable hint for installing the given server."""
    program = os.path.basename(command[0]) if command else ""
    hint = INSTALL_HINTS.get(program)
    if hint:
        return f"Please install it with: {hint}"
    return f"Please make sure '{program}' is installed and on your PATH"


def check_installed(command: List[str]) -> bool:
    """Check and report language server installation status.

    Does not actually install anything, just logs how to if it is missing.
    """
    if is_server_installed(command):
        logger.info(f"Language server found: {command[0]}")
        return True

    program = command[0] if command else "<empty command>"
    logger.warning(f"Language server ({program}) is not installed.")
    logger.info(install_hint(command))
    return False
