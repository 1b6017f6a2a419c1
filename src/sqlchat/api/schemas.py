"""Request bodies and response envelopes for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from sqlchat.core.types import ChatReply, QueryResult


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    message: str | None = Field(default=None, description="The user's question")
    session_id: str | None = Field(default=None, description="Session to continue")


class ExecuteRequest(BaseModel):
    """Body of ``POST /api/execute``."""

    sql: str | None = Field(default=None, description="Read-only SQL to run")


def format_success(data: Any, message: str = "OK") -> dict[str, Any]:
    return {"success": True, "message": message, "data": data}


def format_error(error: str, status_code: int) -> dict[str, Any]:
    return {"success": False, "error": error, "status_code": status_code}


def result_payload(result: QueryResult) -> dict[str, Any]:
    """Result fields shared by the chat and execute endpoints."""
    return {
        "results": result.rows,
        "row_count": result.row_count,
        "total_row_count": result.total_row_count,
        "columns": result.columns,
        "truncated": result.truncated,
    }


def chat_payload(reply: ChatReply) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "session_id": reply.session_id,
        "sql_query": reply.sql_query,
        "explanation": reply.explanation,
        "results": [],
        "row_count": 0,
        "total_row_count": 0,
        "columns": [],
        "truncated": False,
        "query_error": reply.query_error,
    }
    if reply.result is not None:
        payload.update(result_payload(reply.result))
    return payload


def execute_payload(result: QueryResult) -> dict[str, Any]:
    return {"sql": result.sql, **result_payload(result), "notice": result.notice}
