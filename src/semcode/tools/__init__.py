"""
Tools exposed by the bridge.
"""

from src.semcode.tools.base import Tool, ToolContext
from src.semcode.tools.check_function_call import CheckFunctionCallTool
from src.semcode.tools.definition import GetDefinitionTool, GetReferencesTool
from src.semcode.tools.search_in_file import SearchInFileTool

__all__ = [
    'Tool',
    'ToolContext',
    'GetDefinitionTool',
    'GetReferencesTool',
    'SearchInFileTool',
    'CheckFunctionCallTool',
]
