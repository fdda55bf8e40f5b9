"""
Definition and reference lookup tools.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

from src.lsp.models import LspLocation
from src.semcode.tools.base import Tool, ToolContext, position_field, string_field

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class PositionArgs:
    """Structured arguments for position-based queries."""
    file_path: str
    line: int
    character: int


def format_location(location: LspLocation) -> str:
    return (
        f"File: {location.path}\n"
        f"Line: {location.range.start.line}, Character: {location.range.start.character}"
    )


class PositionTool(Tool):
    """Shared argument handling for tools addressed by file and position."""

    file_description = "The absolute path to the file containing the symbol"

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "filePath": string_field(self.file_description),
                "line": position_field("The 0-based line number where the symbol is located"),
                "character": position_field(
                    "The 0-based character offset on the line where the symbol is located"
                ),
            },
            "required": ["filePath", "line", "character"],
        }

    def parse_arguments(self, arguments: Dict[str, Any]) -> PositionArgs:
        return PositionArgs(
            file_path=arguments["filePath"],
            line=int(arguments["line"]),
            character=int(arguments["character"]),
        )


class GetDefinitionTool(PositionTool):
    """Go-to-definition for the symbol at a position."""

    file_description = (
        "The absolute path to the file containing the symbol usage "
        "(e.g. /path/to/project/src/index.ts)"
    )

    @property
    def name(self) -> str:
        return "get_definition"

    def description(self) -> str:
        return (
            "Get the definition location of a symbol. Returns the file path, line, and "
            "character where the symbol is defined. Tip: Use 'search_in_file' to find the "
            "exact line and character of the symbol you are interested in."
        )

    async def process(self, ctx: ToolContext, args: PositionArgs) -> str:
        locations = await ctx.client.get_definition(args.file_path, args.line, args.character)
        if not locations:
            return "No definition found."
        return "\n\n".join(format_location(location) for location in locations)


class GetReferencesTool(PositionTool):
    """Find-references for the symbol at a position."""

    file_description = "The absolute path to the file containing the symbol definition or usage"

    @property
    def name(self) -> str:
        return "get_references"

    def description(self) -> str:
        return (
            "Find all references to a symbol. Returns a list of locations where the symbol "
            "is used. Tip: Use 'search_in_file' to find the exact line and character of the "
            "symbol definition or usage."
        )

    async def process(self, ctx: ToolContext, args: PositionArgs) -> str:
        locations = await ctx.client.get_references(args.file_path, args.line, args.character)
        if locations is None:
            return json.dumps(None)
        return json.dumps([location.to_dict() for location in locations], indent=2)
