"""
Search in file tool implementation.

Finds the zero-based coordinates of a literal string so they can be fed to the
position-based tools.
"""

import asyncio
import json
import logging
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from src.semcode.resolver import normalize_path
from src.semcode.tools.base import Tool, ToolContext, string_field

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class SearchInFileArgs:
    """Structured arguments for search_in_file tool."""
    file_path: str
    query: str


def find_matches(content: str, query: str) -> List[Dict[str, Any]]:
    """Find every occurrence of ``query`` in ``content``.

    The search resumes one character after each match start, so overlapping
    occurrences ("aa" in "aaa") are all reported.
    """
    matches = []
    for line_number, line in enumerate(content.split("\n")):
        index = line.find(query)
        while index != -1:
            matches.append({"line": line_number, "character": index, "text": line.strip()})
            index = line.find(query, index + 1)
    return matches


class SearchInFileTool(Tool):
    """
    Tool for locating a literal string in one file.

    Features:
    - Reports zero-based line and character of every match
    - Includes overlapping matches
    - Resolves relative paths against the project root
    """

    @property
    def name(self) -> str:
        return "search_in_file"

    def description(self) -> str:
        return textwrap.dedent(
            """
            Search for a string in a file to find its line and character position. Useful for finding the arguments for get_definition.
            """
        ).strip()

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "filePath": string_field("The absolute path to the file to search in"),
                "query": string_field("The string to search for"),
            },
            "required": ["filePath", "query"],
        }

    def parse_arguments(self, arguments: Dict[str, Any]) -> SearchInFileArgs:
        return SearchInFileArgs(file_path=arguments["filePath"], query=arguments["query"])

    async def process(self, ctx: ToolContext, args: SearchInFileArgs) -> str:
        path = Path(normalize_path(args.file_path, ctx.root_path))
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")

        matches = find_matches(content, args.query)
        logger.debug(f"Found {len(matches)} matches for {args.query!r} in {path}")
        return (
            f"Found {len(matches)} matches (coordinates are 0-based, ready for use with "
            f"get_definition/get_references):\n{json.dumps(matches, indent=2)}"
        )
