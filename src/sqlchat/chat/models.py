"""Chat model providers.

A provider turns a message list plus tool definitions into one assistant
reply. The OpenAI provider works with any OpenAI-compatible endpoint.

Example:
    >>> model = get_chat_model("openai", model="gpt-4o-mini")  # Uses OPENAI_API_KEY
    >>> reply = model.complete(messages, tools)
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from sqlchat.core.types import ModelReply, ToolCall
from sqlchat.exceptions import ChatModelError

if TYPE_CHECKING:
    from openai import OpenAI

    from sqlchat.tools.base import ToolDefinition

logger = logging.getLogger(__name__)


class ChatModel(ABC):
    """Interface for chat model providers."""

    @abstractmethod
    def complete(
        self, messages: list[dict[str, Any]], tools: list[ToolDefinition]
    ) -> ModelReply:
        """Produce the next assistant turn.

        Args:
            messages: Conversation so far, system message first
            tools: Tools the model may call

        Returns:
            ModelReply with text and/or tool calls

        Raises:
            ChatModelError: If the provider fails
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier."""
        ...


def _decode_arguments(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ChatModelError(f"Model sent malformed tool arguments: {e}") from e
    return decoded if isinstance(decoded, dict) else {}


class OpenAIChatModel(ChatModel):
    """OpenAI chat completions with function calling."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            model: Model name. Defaults to gpt-4o-mini.
            api_key: API key. Falls back to OPENAI_API_KEY env var.
            base_url: Base URL of an OpenAI-compatible server
            timeout: Seconds to wait for each completion
        """
        try:
            from openai import OpenAI
        except ImportError as e:
            raise ImportError(
                "openai is required for chat. Install it with: pip install 'sqlchat[openai]'"
            ) from e

        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key and not base_url:
            raise ChatModelError(
                "OpenAI API key required. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self._client: OpenAI = OpenAI(
            api_key=api_key or "unused", base_url=base_url, timeout=timeout
        )
        self._model = model

    def complete(
        self, messages: list[dict[str, Any]], tools: list[ToolDefinition]
    ) -> ModelReply:
        from openai import OpenAIError

        request: dict[str, Any] = {"model": self._model, "messages": messages}
        if tools:
            request["tools"] = [tool.to_openai_format() for tool in tools]

        logger.debug("Requesting completion from %s (%d messages)", self._model, len(messages))
        try:
            response = self._client.chat.completions.create(**request)
        except OpenAIError as e:
            raise ChatModelError(f"Chat model request failed: {e}") from e

        if not response.choices:
            raise ChatModelError("Chat model returned no choices")
        message = response.choices[0].message
        return ModelReply(
            content=message.content,
            tool_calls=[
                ToolCall(
                    id=call.id,
                    name=call.function.name,
                    arguments=_decode_arguments(call.function.arguments),
                )
                for call in message.tool_calls or []
            ],
        )

    @property
    def model_name(self) -> str:
        return self._model


def get_chat_model(provider: str | ChatModel = "openai", **kwargs: Any) -> ChatModel:
    """Get a chat model by name or return the model if already instantiated.

    Args:
        provider: Provider name ("openai") or ChatModel instance
        **kwargs: Additional arguments passed to the provider constructor

    Raises:
        ValueError: If provider name is unknown
        ImportError: If required dependencies are not installed
    """
    if isinstance(provider, ChatModel):
        return provider
    if provider == "openai":
        return OpenAIChatModel(**kwargs)
    raise ValueError(f"Unknown chat model provider: {provider}. Available: 'openai'")
