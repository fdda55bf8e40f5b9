"""
Structured logging of tool calls.

Each call is appended as one JSON document to ``<home>/<session_id>/<name>.json``.
The file always holds a valid JSON array, so it can be loaded while the bridge
is still writing to it.
"""

import datetime
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

# Configure logger
logger = logging.getLogger(__name__)

EMPTY_ARRAY = "[\n]"


class JsonArrayFile:
    """Append-only JSON array on disk, kept open between writes."""

    def __init__(self, handle: TextIO, has_entries: bool):
        self._handle = handle
        self.has_entries = has_entries

    @staticmethod
    @lru_cache(maxsize=32)
    def load(path: Path) -> "JsonArrayFile":
        """Open the array at ``path``, creating an empty one if needed.

        Handles are cached per path so one session keeps appending to one file.
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        has_entries = path.exists() and os.path.getsize(path) > len(EMPTY_ARRAY)
        if not has_entries:
            path.write_text(EMPTY_ARRAY, encoding="utf-8")

        handle = open(path, "r+", encoding="utf-8")
        # Park on the closing bracket; the next append overwrites it
        handle.seek(os.path.getsize(path) - 1)

        return JsonArrayFile(handle, has_entries)

    def append(self, document: Dict[str, Any]) -> None:
        separator = ",\n" if self.has_entries else ""
        self._handle.write(separator + json.dumps(document, indent=2, default=str) + "\n]")
        self._handle.flush()
        self._handle.seek(self._handle.tell() - 1)
        self.has_entries = True


class StructuredLogger:
    """
    Records structured data as JSON documents, one file per name and session.

    Args:
        home: Base directory, defaults to SEMCODE_HOME
    """

    def __init__(self, home: Optional[str] = None):
        if home is None:
            from src import SEMCODE_HOME
            home = SEMCODE_HOME
        self.home = Path(home)

    def path_for(self, logger_name: str, session_id: str) -> Path:
        return self.home / session_id / f"{logger_name}.json"

    def record(self, logger_name: str, data: Dict[str, Any]) -> None:
        """
        Append ``data`` to the log named ``logger_name``.

        The entry is filed under ``data["session_id"]`` and stamped with the
        current time unless it carries a timestamp. Write failures are logged
        and never reach the caller.
        """
        entry = dict(data)
        entry.setdefault("timestamp", datetime.datetime.now().isoformat())

        path = self.path_for(logger_name, str(entry.get("session_id", "unknown")))
        try:
            JsonArrayFile.load(path).append(entry)
        except OSError as e:
            logger.warning(f"Failed to record {logger_name} entry in {path}: {e}")
