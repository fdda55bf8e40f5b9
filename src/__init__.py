"""
semantic-code-mcp - MCP bridge to language servers.

This package exposes code intelligence from a Language Server Protocol server
as Model Context Protocol tools.
"""

import logging
import logging.handlers
import os
import sys
from dotenv import load_dotenv

# Configure logger for this module
logger = logging.getLogger(__name__)

# Load environment variables from .env file if present
load_dotenv()

if "pytest" not in sys.modules:
    SEMCODE_HOME = os.environ.get("SEMCODE_HOME", os.path.expanduser("~/.semcode"))
else:
    SEMCODE_HOME = "/tmp/.semcode"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 3

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("mcp", "anyio")


def _make_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.setLevel(level)
    return handler


def setup_logging(log_level_name: str = None) -> None:
    """
    Configure logging for the whole bridge.

    Sets up:
    - {SEMCODE_HOME}/logs/stdout.log with every message at the chosen level
    - {SEMCODE_HOME}/logs/stderr.log with warnings and above
    - A stderr console handler when LOG_TO_CONSOLE=1; stdout is reserved for
      the MCP protocol and never receives log output
    """
    log_level_name = (log_level_name or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)

    log_dir = os.path.join(SEMCODE_HOME, "logs")
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    for file_name, level in (("stdout.log", log_level), ("stderr.log", logging.WARNING)):
        rotating = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, file_name),
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
        )
        root_logger.addHandler(_make_handler(rotating, level))

    if os.environ.get("LOG_TO_CONSOLE", "0") == "1":
        root_logger.addHandler(_make_handler(logging.StreamHandler(sys.stderr), log_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging to {log_dir} at level {logging.getLevelName(log_level)}")


setup_logging()
