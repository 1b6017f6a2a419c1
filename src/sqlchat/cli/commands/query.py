"""Query execution commands."""

from pathlib import Path
from typing import Annotated

import typer

from sqlchat.cli.context import CLIContext
from sqlchat.cli.output import OutputFormatter
from sqlchat.query.executor import QueryExecutor
from sqlchat.query.validator import QueryValidator

# Create query subcommand group
app = typer.Typer(help="Execute and validate read-only SQL queries")


def _read_sql(sql: str | None, from_file: str | None) -> str:
    if from_file:
        return Path(from_file).read_text()
    if sql:
        return sql
    raise typer.BadParameter("Either provide SQL or use --file")


@app.command("run")
def query_run(
    ctx: typer.Context,
    sql: Annotated[
        str | None,
        typer.Argument(help="SQL query to execute"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Load SQL from file"),
    ] = None,
    max_rows: Annotated[
        int,
        typer.Option("--max-rows", help="Rows returned before the result is truncated"),
    ] = 100,
) -> None:
    """Execute a read-only SQL query.

    Only SELECT (and WITH) queries are accepted; anything else is rejected
    before it reaches the database.

    Examples:

        sqlchat query run "SELECT name, price FROM products LIMIT 10"
        sqlchat query run --file report.sql
        sqlchat --json query run "SELECT COUNT(*) AS n FROM products"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        sql_content = _read_sql(sql, from_file)
        executor = QueryExecutor(max_rows=max_rows, timeout=cli_ctx.settings.query_timeout)
        result = executor.execute(cli_ctx.get_connection(), sql_content)
        formatter.print_result(result)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("validate")
def query_validate(
    ctx: typer.Context,
    sql: Annotated[
        str | None,
        typer.Argument(help="SQL query to validate"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--file", "-f", help="Load SQL from file"),
    ] = None,
) -> None:
    """Check whether a query would pass the read-only gate, without running it.

    Examples:

        sqlchat query validate "SELECT * FROM products"
        sqlchat query validate --file query.sql
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        result = QueryValidator().validate(_read_sql(sql, from_file))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if result.valid:
        formatter.print_success("Query is valid")
        return

    if cli_ctx.json_output:
        formatter.print_data(
            {"valid": False, "error": result.error, "keyword": result.keyword, "rule": result.rule}
        )
    else:
        formatter.print_error(ValueError(result.error))
    raise typer.Exit(code=1)
