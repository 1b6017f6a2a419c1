"""Schema inspection commands."""

from typing import Annotated

import typer

from sqlchat.cli.context import CLIContext
from sqlchat.cli.output import OutputFormatter, console
from sqlchat.query.introspection import SchemaIntrospector

# Create schema subcommand group
app = typer.Typer(help="Inspect the database schema")


@app.command("show")
def schema_show(
    ctx: typer.Context,
    raw: Annotated[
        bool,
        typer.Option("--raw", help="Print the exact text given to the language model"),
    ] = False,
) -> None:
    """Show tables and columns.

    Examples:

        sqlchat schema show
        sqlchat schema show --raw
        sqlchat --json schema show
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        introspector = SchemaIntrospector(cli_ctx.get_connection())

        if raw:
            text = introspector.describe()
            if cli_ctx.json_output:
                formatter.print_data({"schema": text})
            else:
                console.print(text, markup=False, highlight=False)
            return

        tables = introspector.tables()
        if cli_ctx.json_output:
            formatter.print_data([table.model_dump() for table in tables])
            return

        if not tables:
            typer.echo("No tables found in database")
            return

        for table in tables:
            formatter.print_table(
                table.name,
                [
                    {
                        "Column": column.name,
                        "Type": column.type or "",
                        "Nullable": "" if column.nullable else "NOT NULL",
                        "Key": "PK" if column.primary_key else "",
                    }
                    for column in table.columns
                ],
                ["Column", "Type", "Nullable", "Key"],
            )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
