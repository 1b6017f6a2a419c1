"""FastAPI application exposing chat, schema and query execution.

Routes are plain ``def`` endpoints, so FastAPI runs them on its worker
threadpool and blocking database or model calls never stall the event loop.

Example:
    >>> app = create_app(Settings(db_type="sqlite", db_path="data/sample.sqlite"))
    >>> # uvicorn.run(app, host="0.0.0.0", port=8080)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from sqlchat import __version__
from sqlchat.api.exception_handlers import register_exception_handlers
from sqlchat.api.schemas import (
    ChatRequest,
    ExecuteRequest,
    chat_payload,
    execute_payload,
    format_success,
)
from sqlchat.chat.models import ChatModel, get_chat_model
from sqlchat.chat.service import ChatService
from sqlchat.chat.session import SessionStore
from sqlchat.config import Settings
from sqlchat.core.connection import ConnectionHandle, get_connection
from sqlchat.exceptions import ChatModelError, SQLChatError
from sqlchat.query.executor import QueryExecutor
from sqlchat.query.introspection import SchemaCache

logger = logging.getLogger(__name__)


class AppState:
    """Shared resources behind the HTTP routes.

    The lock only guards creating the shared objects. Liveness checks and
    re-acquiring a dropped connection happen outside it, in the executor.
    """

    def __init__(
        self,
        settings: Settings,
        connection: ConnectionHandle | None = None,
        chat_model: ChatModel | None = None,
        store: SessionStore | None = None,
        tables: Mapping[str, Any] | None = None,
    ) -> None:
        self.settings = settings
        self.store = store if store is not None else SessionStore()
        self.executor = QueryExecutor(timeout=settings.query_timeout)
        self._connection = connection
        self._chat_model = chat_model
        self._tables = tables
        self._schema_cache: SchemaCache | None = None
        self._service: ChatService | None = None
        self._lock = threading.Lock()

    @property
    def llm_configured(self) -> bool:
        return self._chat_model is not None or self.settings.llm_configured

    def ensure_db(self) -> ConnectionHandle:
        """Return the shared connection handle, creating it on first use.

        Raises:
            SQLChatConnectionError: If the database cannot be opened
        """
        with self._lock:
            if self._connection is None:
                self._connection = get_connection(self.settings, tables=self._tables)
            return self._connection

    def schema_cache(self) -> SchemaCache:
        connection = self.ensure_db()
        with self._lock:
            if self._schema_cache is None:
                self._schema_cache = SchemaCache(connection)
            return self._schema_cache

    def chat_service(self) -> ChatService:
        """Build the chat service on first use.

        Raises:
            ChatModelError: If no chat model is configured
        """
        connection = self.ensure_db()
        cache = self.schema_cache()
        with self._lock:
            if self._service is None:
                if self._chat_model is None:
                    if not self.settings.llm_configured:
                        raise ChatModelError(
                            "No chat model configured. Set OPENAI_API_KEY "
                            "(or LLM_BASE_URL for an OpenAI-compatible server)."
                        )
                    self._chat_model = get_chat_model(
                        "openai",
                        model=self.settings.llm_model,
                        api_key=self.settings.llm_api_key,
                        base_url=self.settings.llm_base_url,
                        timeout=float(self.settings.llm_timeout),
                    )
                self._service = ChatService(
                    connection,
                    self._chat_model,
                    store=self.store,
                    schema_cache=cache,
                    executor=self.executor,
                )
            return self._service

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    app.state.sqlchat.close()


def get_state(request: Request) -> AppState:
    return request.app.state.sqlchat


router = APIRouter(prefix="/api")


@router.get("/health", tags=["health"])
def health(state: AppState = Depends(get_state)) -> dict[str, str]:
    """Report database reachability and whether a chat model is configured."""
    try:
        state.ensure_db().ensure_alive()
        database = "connected"
    except SQLChatError as e:
        logger.warning("Health check could not reach the database: %s", e.message)
        database = "disconnected"
    return {
        "status": "ok",
        "database": database,
        "llm": "configured" if state.llm_configured else "missing",
    }


@router.get("/schema", tags=["schema"])
def schema(state: AppState = Depends(get_state)) -> dict[str, Any]:
    return format_success({"schema": state.schema_cache().get()}, "Schema retrieved")


@router.post("/chat", tags=["chat"])
def chat(body: ChatRequest, state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Answer a natural-language question, running SQL as the model requests."""
    if body.message is None or not body.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="message is required")
    reply = state.chat_service().send(body.session_id, body.message.strip())
    return format_success(chat_payload(reply), "Chat response generated")


@router.delete("/chat/{session_id}", tags=["chat"])
def clear_session(session_id: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    cleared = state.store.clear(session_id)
    message = "Session cleared" if cleared else "Session not found"
    return format_success({"session_id": session_id, "cleared": cleared}, message)


@router.post("/execute", tags=["query"])
def execute(body: ExecuteRequest, state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Run a read-only SQL query directly.

    Validation failures return 400; execution failures return 500.
    """
    if body.sql is None or not body.sql.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="sql is required")
    result = state.executor.execute(state.ensure_db(), body.sql)
    return format_success(execute_payload(result), "Query executed")


def create_app(
    settings: Settings | None = None,
    *,
    connection: ConnectionHandle | None = None,
    chat_model: ChatModel | None = None,
    store: SessionStore | None = None,
    tables: Mapping[str, Any] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Resolved settings. Read from the environment if omitted.
        connection: Pre-opened connection (otherwise built from settings)
        chat_model: Chat model (otherwise built from settings on first chat)
        store: Session store shared with other components
        tables: Datasets for the memory backend

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings.from_env()
    app = FastAPI(
        title="SQLChat",
        lifespan=lifespan,
        description="Ask questions about a SQL database in natural language",
        version=__version__,
    )
    app.state.sqlchat = AppState(
        settings, connection=connection, chat_model=chat_model, store=store, tables=tables
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_origin.split(",")],
        allow_credentials=settings.cors_origin != "*",
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)

    logger.info("Application created for %s backend", settings.db_type)
    return app


def run(settings: Settings | None = None) -> None:
    """Serve the API with uvicorn on API_HOST:API_PORT."""
    import uvicorn

    settings = settings or Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)
