"""Tool definitions the language model can call."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, get_type_hints

from pydantic import BaseModel

_JSON_TYPES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


class ToolDefinition(BaseModel):
    """A callable tool with a JSON-schema argument contract.

    Compatible with OpenAI and Anthropic tool formats.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    function: Callable[..., Any] | None = None

    model_config = {"arbitrary_types_allowed": True}

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic_format(self) -> dict[str, Any]:
        """Convert to Anthropic tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to generic dict format."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    def invoke(self, arguments: dict[str, Any]) -> Any:
        """Call the bound function with model-supplied arguments.

        Raises:
            TypeError: If no function is bound or required arguments are missing
        """
        if self.function is None:
            raise TypeError(f"Tool '{self.name}' has no function bound")
        missing = [a for a in self.parameters.get("required", []) if a not in arguments]
        if missing:
            raise TypeError(f"Tool '{self.name}' is missing argument(s): {', '.join(missing)}")
        known = self.parameters.get("properties", {})
        return self.function(**{k: v for k, v in arguments.items() if k in known})


def function_to_tool_definition(
    func: Callable[..., Any],
    name: str | None = None,
    description: str | None = None,
) -> ToolDefinition:
    """Convert a Python function to a ToolDefinition.

    Only scalar, list and dict parameters are described; anything else is
    declared as a string.

    Args:
        func: Function to convert
        name: Override function name
        description: Override description (uses docstring if not provided)

    Returns:
        ToolDefinition for the function
    """
    tool_name = name or func.__name__
    tool_description = description or inspect.getdoc(func) or f"Execute {tool_name}"

    hints = get_type_hints(func)
    properties: dict[str, Any] = {}
    required: list[str] = []

    for param_name, param in inspect.signature(func).parameters.items():
        if param_name == "self":
            continue
        schema: dict[str, Any] = {"type": _JSON_TYPES.get(hints.get(param_name, str), "string")}
        if param.default is inspect.Parameter.empty:
            required.append(param_name)
        elif param.default is not None:
            schema["default"] = param.default
        properties[param_name] = schema

    parameters: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        parameters["required"] = required

    return ToolDefinition(
        name=tool_name,
        description=tool_description.strip(),
        parameters=parameters,
        function=func,
    )
