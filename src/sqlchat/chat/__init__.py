"""Natural-language chat over a database."""

from sqlchat.chat.models import ChatModel, OpenAIChatModel, get_chat_model
from sqlchat.chat.prompt import build_system_prompt, extract_sql
from sqlchat.chat.service import ChatService
from sqlchat.chat.session import ChatSession, SessionStore, new_session_id

__all__ = [
    "ChatModel",
    "ChatService",
    "ChatSession",
    "OpenAIChatModel",
    "SessionStore",
    "build_system_prompt",
    "extract_sql",
    "get_chat_model",
    "new_session_id",
]
