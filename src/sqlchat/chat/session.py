"""Chat sessions and the store that owns them."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlchat.core.types import QueryResult


def new_session_id() -> str:
    """Generate an identifier for a session the client did not name."""
    return f"session_{uuid.uuid4().hex[:12]}"


@dataclass
class ChatSession:
    """One conversation: its turns plus the latest query for display.

    ``lock`` serializes turns within the session; different sessions never
    share state.
    """

    session_id: str
    messages: list[dict[str, Any]] = field(default_factory=list)
    last_sql: str | None = None
    last_result: QueryResult | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_result(self, sql: str, result: QueryResult) -> None:
        """Remember the most recent successful query."""
        self.last_sql = sql
        self.last_result = result


class SessionStore:
    """Thread-safe map of session id to ChatSession."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> ChatSession | None:
        """Get a session if it exists."""
        with self._lock:
            return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ChatSession:
        """Get a session, creating it on first access.

        Two concurrent first requests for the same id receive the same object.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ChatSession(session_id=session_id)
                self._sessions[session_id] = session
            return session

    def clear(self, session_id: str) -> bool:
        """Forget a session.

        Returns:
            True if a session was removed
        """
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
