"""Shared test fixtures for SQLChat."""

from collections.abc import Generator, Iterable
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine, text

from sqlchat.chat.models import ChatModel
from sqlchat.core.connection import InMemoryConnection, SQLiteFileConnection
from sqlchat.core.types import ModelReply

PRODUCTS = [
    (1, "Laptop", 1299.99, "electronics"),
    (2, "Phone", 899.5, "electronics"),
    (3, "Desk", 349.0, "furniture"),
    (4, "Chair", 149.0, "furniture"),
    (5, "Monitor", 279.99, "electronics"),
    (6, "Lamp", 39.95, "furniture"),
]

EVENT_COUNT = 250

SETTINGS_ENV_VARS = (
    "DB_TYPE",
    "DB_PATH",
    "DB_URI",
    "DB_DRIVER",
    "LLM_MODEL",
    "OPENAI_API_KEY",
    "LLM_BASE_URL",
    "LLM_TIMEOUT",
    "QUERY_TIMEOUT",
    "API_HOST",
    "API_PORT",
    "CORS_ORIGIN",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings resolution."""
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def build_sample_database(path: Path) -> Path:
    """Create a SQLite file with a products table and a 250-row events table."""
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE products ("
                "id INTEGER PRIMARY KEY, name TEXT NOT NULL, price REAL, category TEXT)"
            )
        )
        conn.execute(
            text("INSERT INTO products VALUES (:id, :name, :price, :category)"),
            [{"id": i, "name": n, "price": p, "category": c} for i, n, p, c in PRODUCTS],
        )
        conn.execute(text("CREATE TABLE events (id INTEGER PRIMARY KEY, kind TEXT)"))
        conn.execute(
            text("INSERT INTO events (id, kind) VALUES (:id, :kind)"),
            [{"id": i, "kind": "click" if i % 2 else "view"} for i in range(1, EVENT_COUNT + 1)],
        )
        conn.execute(
            text("CREATE VIEW expensive_products AS SELECT name, price FROM products WHERE price > 500")
        )
    engine.dispose()
    return path


@pytest.fixture
def sample_db_path(tmp_path: Path) -> Path:
    """Path of a freshly built sample SQLite database."""
    return build_sample_database(tmp_path / "sample.sqlite")


@pytest.fixture
def sqlite_conn(sample_db_path: Path) -> Generator[SQLiteFileConnection, None, None]:
    """Read-only connection to the sample database."""
    connection = SQLiteFileConnection(sample_db_path)
    yield connection
    connection.close()


@pytest.fixture
def memory_conn() -> Generator[InMemoryConnection, None, None]:
    """In-memory connection seeded with a small sales table."""
    connection = InMemoryConnection(
        {
            "sales": {
                "region": ["north", "south", "east"],
                "amount": [120.5, 80.0, 42.25],
                "units": [3, 2, 1],
            }
        }
    )
    yield connection
    connection.close()


class FakeChatModel(ChatModel):
    """Chat model that replays scripted replies and records what it was sent."""

    def __init__(self, replies: Iterable[ModelReply]) -> None:
        self._replies = list(replies)
        self.calls: list[list[dict[str, Any]]] = []
        self.tool_names: list[list[str]] = []

    def complete(self, messages, tools) -> ModelReply:
        self.calls.append([dict(m) for m in messages])
        self.tool_names.append([tool.name for tool in tools])
        if not self._replies:
            return ModelReply(content="Done.")
        return self._replies.pop(0)

    @property
    def model_name(self) -> str:
        return "fake"


@pytest.fixture
def fake_model_factory():
    """Build a FakeChatModel from scripted replies."""
    return FakeChatModel
