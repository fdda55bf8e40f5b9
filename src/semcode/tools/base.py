"""
Core tool module defining the Tool interface.

This module provides the foundation for all tools exposed over MCP:
- Abstract Tool interface that all concrete tools must implement
- JSON schema validation of tool arguments before anything is executed
- Shared schema fragments for loosely typed host arguments
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jsonschema

from src.semcode.exceptions import ToolArgumentError
from src.semcode.messages import ToolResult

# Configure logging
logger = logging.getLogger(__name__)

# Hosts serialize numbers inconsistently, so positions accept ints or digit strings
NON_NEGATIVE_INT = {
    "anyOf": [
        {"type": "integer", "minimum": 0},
        {"type": "string", "pattern": r"^\s*[0-9]+\s*$"},
    ]
}


def position_field(description: str) -> Dict[str, Any]:
    return dict(NON_NEGATIVE_INT, description=description)


def string_field(description: str) -> Dict[str, Any]:
    return {"type": "string", "minLength": 1, "description": description}


@dataclass
class ToolContext:
    """State shared by every tool call of one bridge process."""
    client: Any
    root_path: str
    resolver: Any = None
    session_id: str = "default"


class Tool(ABC):
    """
    Abstract base class for tools callable over MCP.

    Subclasses must implement:
    - name: Property that returns the tool name
    - description(): Returns the description shown to the host
    - input_schema(): Returns the JSON schema of the arguments object
    - parse_arguments(): Converts validated arguments into a structured form
    - process(): Runs the tool and returns the result text
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Returns the name of the tool.
        """
        pass

    @abstractmethod
    def description(self) -> str:
        """
        Returns the description of the tool.
        """
        pass

    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        """
        Returns the JSON schema for the tool's arguments object.
        """
        pass

    @abstractmethod
    def parse_arguments(self, arguments: Dict[str, Any]) -> Any:
        """
        Converts schema-valid arguments into the tool's argument dataclass.
        """
        pass

    @abstractmethod
    async def process(self, ctx: ToolContext, args: Any) -> str:
        """
        Core implementation of the tool's functionality.

        Raises:
            Exception: If tool execution fails
        """
        pass

    def validate(self, arguments: Optional[Dict[str, Any]]) -> Any:
        """
        Validates the arguments and returns them in structured form.

        Raises:
            ToolArgumentError: If validation fails
        """
        arguments = arguments if arguments is not None else {}
        try:
            jsonschema.validate(instance=arguments, schema=self.input_schema())
        except jsonschema.ValidationError as e:
            raise ToolArgumentError(self.name, e.message, e.absolute_path) from e

        try:
            return self.parse_arguments(arguments)
        except (TypeError, ValueError) as e:
            raise ToolArgumentError(self.name, str(e)) from e

    async def execute(self, ctx: ToolContext, arguments: Optional[Dict[str, Any]]) -> ToolResult:
        """
        Validates the arguments, then runs the tool.

        Exceptions propagate; the shell converts them into error results.
        """
        args = self.validate(arguments)
        logger.debug(f"Executing {self.name} with {args}")
        content = await self.process(ctx, args)
        return ToolResult(content=content, success=True, tool_name=self.name)
