"""
Command Line Interface module for the bridge.

This module provides the main entry point, handling command-line arguments,
building the configuration and running the MCP server on stdio.
"""

import argparse
import asyncio
import logging
import sys

# Logging is configured in src/__init__.py when imported
from src import setup_logging
from src.semcode.config import BridgeConfig
from src.semcode.exceptions import FatalError
from src.semcode.server import serve

# Configure logger for this module
logger = logging.getLogger(__name__)


class CLI:
    """
    Encapsulates the CLI application logic.

    This class is responsible for:
    - Parsing command-line arguments
    - Resolving the configuration
    - Running the bridge until the host disconnects
    """

    @classmethod
    def start(cls, argv=None) -> None:
        """
        Start the CLI application.

        Failures to start the bridge are fatal and exit with status 1; once
        running, per-call failures are reported to the host instead.
        """
        try:
            args = cls._parse_args(argv)
            config = BridgeConfig.load(
                project_root=args.root,
                lsp_command=args.lsp_command,
                log_level=args.log_level,
            )
            setup_logging(config.log_level)

            logger.info(
                f"Starting bridge for {config.project_root} with server: {' '.join(config.server_command)}"
            )
            asyncio.run(serve(config))

        except KeyboardInterrupt:
            logger.info("Application interrupted by user")
            sys.exit(0)

        except FatalError as e:
            logger.critical(f"Fatal error: {e}")
            print(f"Fatal error in main(): {e}", file=sys.stderr)
            sys.exit(1)

        except Exception as e:
            logger.critical(f"Unhandled exception: {e}", exc_info=True)
            print(f"Fatal error in main(): {e}", file=sys.stderr)
            sys.exit(1)

    @staticmethod
    def _parse_args(argv=None) -> argparse.Namespace:
        """
        Parse command-line arguments.

        Returns:
            Parsed argument namespace
        """
        parser = argparse.ArgumentParser(
            description="semcode - MCP server bridging to a language server",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        )
        parser.add_argument(
            "--root", "-r",
            default=None,
            help="Project root that tool paths are resolved against "
                 "(defaults to $SEMCODE_PROJECT_ROOT or the current directory)",
        )
        parser.add_argument(
            "--lsp-command",
            default=None,
            help="Command line used to launch the language server "
                 "(defaults to $SEMCODE_LSP_COMMAND or typescript-language-server --stdio)",
        )
        parser.add_argument(
            "--log-level",
            default=None,
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            help="Logging level (defaults to $LOG_LEVEL or INFO)",
        )
        return parser.parse_args(argv)


def main() -> None:
    """
    Main entry point for the application.

    This function simply delegates to the CLI class to start the application.
    """
    CLI.start()


if __name__ == "__main__":
    main()
