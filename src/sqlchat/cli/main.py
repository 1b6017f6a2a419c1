"""SQLChat CLI - Main entry point."""

import os
from typing import Annotated

import typer

import sqlchat
from sqlchat.cli.context import CLIContext, resolve_settings
from sqlchat.cli.output import OutputFormatter, console
from sqlchat.config import configure_logging
from sqlchat.exceptions import SQLChatError

# Create main Typer app
app = typer.Typer(
    name="sqlchat",
    help="SQLChat CLI - Ask questions about a SQL database in natural language",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    db_type: Annotated[
        str | None,
        typer.Option("--db-type", envvar="DB_TYPE", help="Backend: sqlite, memory or remote"),
    ] = None,
    db_path: Annotated[
        str | None,
        typer.Option("--db-path", envvar="DB_PATH", help="SQLite database file"),
    ] = None,
    db_uri: Annotated[
        str | None,
        typer.Option("--db-uri", envvar="DB_URI", help="Connection URI for a remote database"),
    ] = None,
    db_driver: Annotated[
        str | None,
        typer.Option("--db-driver", envvar="DB_DRIVER", help="Remote backend name (postgresql, mysql)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    formatter = OutputFormatter(json_output)
    try:
        settings = resolve_settings(db_type, db_path, db_uri, db_driver)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    # WARNING unless LOG_LEVEL is set explicitly
    configure_logging(settings.log_level if os.environ.get("LOG_LEVEL") else "WARNING")
    ctx.obj = CLIContext(settings=settings, json_output=json_output)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"SQLChat v{sqlchat.__version__}")


@app.command()
def ask(
    ctx: typer.Context,
    question: Annotated[str, typer.Argument(help="Question about the data")],
    session_id: Annotated[
        str | None,
        typer.Option("--session", "-s", help="Session id to continue"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", envvar="LLM_MODEL", help="Chat model name"),
    ] = None,
) -> None:
    """Ask a question in natural language and show the answer with its SQL.

    Requires the openai extra and OPENAI_API_KEY (or LLM_BASE_URL).

    Examples:

        sqlchat ask "What are the top 3 products by price?"
        sqlchat --json ask "How many orders shipped last month?"
    """
    from sqlchat.chat.models import get_chat_model
    from sqlchat.chat.service import ChatService
    from sqlchat.query.executor import QueryExecutor

    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)
    settings = cli_ctx.settings

    try:
        chat_model = get_chat_model(
            "openai",
            model=model or settings.llm_model,
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=float(settings.llm_timeout),
        )
        service = ChatService(
            cli_ctx.get_connection(),
            chat_model,
            executor=QueryExecutor(timeout=settings.query_timeout),
        )
        reply = service.send(session_id, question)

        if cli_ctx.json_output:
            formatter.print_data(reply.model_dump(mode="json"))
            return

        console.print(reply.explanation)
        if reply.sql_query:
            console.print()
            formatter.print_sql(reply.sql_query)
        if reply.query_error:
            console.print(f"[red]{reply.query_error}[/red]")
        elif reply.result is not None:
            formatter.print_result(reply.result)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        str | None,
        typer.Option("--host", envvar="API_HOST", help="Interface to bind"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", envvar="API_PORT", help="Port to listen on"),
    ] = None,
) -> None:
    """Start the HTTP API server.

    Examples:

        sqlchat serve
        sqlchat --db-path data/shop.sqlite serve --port 9000
    """
    from sqlchat.api.app import run

    cli_ctx: CLIContext = ctx.obj
    try:
        settings = cli_ctx.settings.with_overrides(api_host=host, api_port=port)
    except SQLChatError as e:
        OutputFormatter(cli_ctx.json_output).print_error(e)
        raise typer.Exit(code=1)
    typer.echo(f"Serving SQLChat API on http://{settings.api_host}:{settings.api_port}")
    run(settings)


# Register command groups
from sqlchat.cli.commands import query, schema  # noqa: E402

app.add_typer(schema.app, name="schema")
app.add_typer(query.app, name="query")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
