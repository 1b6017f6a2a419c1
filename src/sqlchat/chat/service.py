"""Chat orchestration: one user message in, one ChatReply out.

Each turn runs the model in a loop. Whenever the model asks for a tool, the
tool runs through ToolRegistry and its output goes back to the model, until
the model answers in plain text or the round limit is reached.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlchat.chat.prompt import build_system_prompt, extract_sql
from sqlchat.chat.session import SessionStore, new_session_id
from sqlchat.core.types import ChatReply, QueryResult
from sqlchat.query.introspection import SchemaCache
from sqlchat.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from sqlchat.chat.models import ChatModel
    from sqlchat.core.connection import ConnectionHandle
    from sqlchat.core.types import ToolCall
    from sqlchat.query.executor import QueryExecutor

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 5

ROUND_LIMIT_MESSAGE = (
    "I stopped after running several queries without reaching an answer. "
    "Try rephrasing the question or narrowing it down."
)


def _tool_error(output: str) -> str | None:
    """Return the error message if a tool output is a JSON error object."""
    try:
        decoded = json.loads(output)
    except json.JSONDecodeError:
        return None
    if isinstance(decoded, dict) and isinstance(decoded.get("error"), str):
        return decoded["error"]
    return None


def _assistant_message(content: str | None, tool_calls: list[ToolCall]) -> dict[str, Any]:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
            }
            for call in tool_calls
        ]
    return message


class ChatService:
    """Answers natural-language questions about one database.

    Example:
        >>> service = ChatService(connection, get_chat_model("openai"))
        >>> reply = service.send(None, "What are the top 3 products by price?")
        >>> reply.sql_query
        'SELECT name, price FROM products ORDER BY price DESC LIMIT 3'
    """

    def __init__(
        self,
        connection: ConnectionHandle,
        model: ChatModel,
        store: SessionStore | None = None,
        schema_cache: SchemaCache | None = None,
        executor: QueryExecutor | None = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ) -> None:
        """Initialize the chat service.

        Args:
            connection: Database the SQL tool runs against
            model: Chat model provider
            store: Session store. A private one is created if omitted.
            schema_cache: Cached schema text for the system prompt
            executor: Executor used by the SQL tool
            max_tool_rounds: Model calls allowed per user message
        """
        self.connection = connection
        self.model = model
        self.store = store if store is not None else SessionStore()
        self.schema_cache = schema_cache or SchemaCache(connection)
        self.executor = executor
        self.max_tool_rounds = max_tool_rounds

    def send(self, session_id: str | None, message: str) -> ChatReply:
        """Process one user message.

        Turns within a session are serialized; different sessions run
        concurrently.

        Args:
            session_id: Existing session id, or None to start a new session
            message: The user's question

        Returns:
            ChatReply with the explanation and the latest query of this turn

        Raises:
            ChatModelError: If the model provider fails
            SQLChatConnectionError: If the database cannot be reached
        """
        session = self.store.get_or_create(session_id or new_session_id())

        with session.lock:
            attempted_sql: str | None = None
            query_error: str | None = None
            latest: QueryResult | None = None

            def on_result(sql: str, result: QueryResult) -> None:
                nonlocal latest
                latest = result
                session.record_result(sql, result)

            registry = ToolRegistry(self.connection, executor=self.executor, on_result=on_result)
            tools = registry.get_all()
            system = {"role": "system", "content": build_system_prompt(self.schema_cache.get())}

            session.messages.append({"role": "user", "content": message})
            explanation: str | None = None

            for round_number in range(1, self.max_tool_rounds + 1):
                reply = self.model.complete([system, *session.messages], tools)
                session.messages.append(_assistant_message(reply.content, reply.tool_calls))

                if not reply.tool_calls:
                    explanation = reply.content or ""
                    break

                logger.debug(
                    "Session %s round %d: %d tool call(s)",
                    session.session_id,
                    round_number,
                    len(reply.tool_calls),
                )
                for call in reply.tool_calls:
                    if call.name == "execute_sql":
                        attempted_sql = call.arguments.get("sql") or attempted_sql
                    output = registry.invoke(call.name, call.arguments)
                    error = _tool_error(output)
                    if call.name == "execute_sql":
                        query_error = error
                    session.messages.append(
                        {"role": "tool", "tool_call_id": call.id, "content": output}
                    )
            else:
                logger.warning(
                    "Session %s hit the tool round limit (%d)",
                    session.session_id,
                    self.max_tool_rounds,
                )
                explanation = ROUND_LIMIT_MESSAGE
                session.messages.append({"role": "assistant", "content": explanation})

            if attempted_sql is None:
                attempted_sql = extract_sql(explanation)

            return ChatReply(
                session_id=session.session_id,
                explanation=explanation or "",
                sql_query=attempted_sql,
                result=latest if query_error is None else None,
                query_error=query_error,
            )

    def clear(self, session_id: str) -> bool:
        """Forget a session's history."""
        return self.store.clear(session_id)
