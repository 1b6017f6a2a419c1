"""Tools exposed to language models."""

from sqlchat.tools.base import ToolDefinition, function_to_tool_definition
from sqlchat.tools.registry import ToolRegistry
from sqlchat.tools.sql_tool import SqlTool, format_tool_result

__all__ = [
    "ToolDefinition",
    "ToolRegistry",
    "SqlTool",
    "format_tool_result",
    "function_to_tool_definition",
]
