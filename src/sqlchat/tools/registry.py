"""Tool registry for model access."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqlchat.exceptions import SQLChatError
from sqlchat.tools.base import ToolDefinition, function_to_tool_definition
from sqlchat.tools.sql_tool import SqlTool

if TYPE_CHECKING:
    from sqlchat.core.connection import ConnectionHandle
    from sqlchat.core.types import QueryResult
    from sqlchat.query.executor import QueryExecutor

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of tools offered to the language model.

    Registers ``execute_sql`` for the given connection; more tools can be
    added with ``register``.
    """

    def __init__(
        self,
        connection: ConnectionHandle,
        executor: QueryExecutor | None = None,
        on_result: Callable[[str, QueryResult], None] | None = None,
    ) -> None:
        """Initialize tool registry.

        Args:
            connection: Connection the SQL tool runs against
            executor: Executor used by the SQL tool
            on_result: Callback receiving each successful (sql, result)
        """
        self._tools: dict[str, ToolDefinition] = {}
        self.sql_tool = SqlTool(connection, executor=executor, on_result=on_result)
        self._tools["execute_sql"] = self.sql_tool.definition()

    def register(
        self,
        name: str,
        func: Callable[..., Any],
        description: str | None = None,
    ) -> ToolDefinition:
        """Register a tool.

        Args:
            name: Tool name
            func: Function to call
            description: Tool description

        Returns:
            Created ToolDefinition
        """
        tool = function_to_tool_definition(func, name=name, description=description)
        self._tools[name] = tool
        return tool

    def get(self, name: str) -> ToolDefinition | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def get_all(self) -> list[ToolDefinition]:
        """Get all registered tools."""
        return list(self._tools.values())

    def invoke(self, name: str, arguments: dict[str, Any]) -> str:
        """Run a tool on behalf of the model.

        Failures the model can act on (rejected SQL, execution errors, bad
        arguments, unknown tools) come back as a JSON ``{"error": ...}`` string
        instead of raising, so the conversation can continue.

        Args:
            name: Tool name requested by the model
            arguments: Decoded tool arguments

        Returns:
            Tool output as a string
        """
        tool = self._tools.get(name)
        if tool is None:
            return json.dumps(
                {"error": f"Unknown tool '{name}'. Available tools: {', '.join(self._tools)}"}
            )
        try:
            output = tool.invoke(arguments)
        except SQLChatError as e:
            logger.info("Tool %s failed: %s", name, e.message)
            return json.dumps({"error": e.message})
        except TypeError as e:
            return json.dumps({"error": str(e)})
        return output if isinstance(output, str) else json.dumps(output, default=str)

    def to_openai_format(self) -> list[dict[str, Any]]:
        """Export all tools in OpenAI function calling format."""
        return [tool.to_openai_format() for tool in self._tools.values()]

    def to_anthropic_format(self) -> list[dict[str, Any]]:
        """Export all tools in Anthropic format."""
        return [tool.to_anthropic_format() for tool in self._tools.values()]

    def to_dict(self) -> list[dict[str, Any]]:
        """Export all tools as dicts."""
        return [tool.to_dict() for tool in self._tools.values()]
