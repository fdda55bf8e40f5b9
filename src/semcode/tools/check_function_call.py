"""
Check function call tool implementation.
"""

from dataclasses import dataclass
from typing import Any, Dict

from src.semcode.tools.base import Tool, ToolContext, string_field


@dataclass
class CheckFunctionCallArgs:
    source_file: str
    source_function: str
    target_file: str
    target_function: str


class CheckFunctionCallTool(Tool):
    """Reports whether one function directly references another."""

    @property
    def name(self) -> str:
        return "check_function_call"

    def description(self) -> str:
        return (
            "Check if one function calls another (direct call). Analyzes if "
            "'sourceFunction' (defined in sourceFile) contains any references to "
            "'targetFunction' (defined in targetFile)."
        )

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "sourceFile": string_field(
                    "The absolute path to the file containing the definition of the caller function"
                ),
                "sourceFunction": string_field("The name of the caller function (e.g. 'main')"),
                "targetFile": string_field(
                    "The absolute path to the file containing the definition of the callee function"
                ),
                "targetFunction": string_field("The name of the callee function (e.g. 'add')"),
            },
            "required": ["sourceFile", "sourceFunction", "targetFile", "targetFunction"],
        }

    def parse_arguments(self, arguments: Dict[str, Any]) -> CheckFunctionCallArgs:
        return CheckFunctionCallArgs(
            source_file=arguments["sourceFile"],
            source_function=arguments["sourceFunction"],
            target_file=arguments["targetFile"],
            target_function=arguments["targetFunction"],
        )

    async def process(self, ctx: ToolContext, args: CheckFunctionCallArgs) -> str:
        result = await ctx.resolver.check_function_call(
            args.source_file, args.source_function, args.target_file, args.target_function
        )
        return result.text
