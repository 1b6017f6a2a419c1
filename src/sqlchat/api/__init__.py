"""HTTP API for SQLChat.

Requires FastAPI and uvicorn (installed with the package).

Example:
    from sqlchat.api import create_app
    app = create_app()
"""

from sqlchat.api.app import AppState, create_app, run

__all__ = ["AppState", "create_app", "run"]
