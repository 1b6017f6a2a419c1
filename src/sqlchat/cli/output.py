"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sqlchat.core.types import QueryResult
from sqlchat.exceptions import SQLChatError

console = Console()
err_console = Console(stderr=True)


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*["NULL" if row.get(col) is None else str(row[col]) for col in columns])
            console.print(table)

    def print_result(self, result: QueryResult, title: str = "Results") -> None:
        """Print a query result with its truncation notice and timing."""
        if self.json_mode:
            self.print_data(result.model_dump())
            return
        if result.rows:
            self.print_table(f"{title} ({result.row_count} rows)", result.rows, result.columns)
        else:
            console.print("Query executed successfully (no results)")
        if result.notice:
            console.print(f"[yellow]{result.notice}[/yellow]")
        console.print(f"Execution time: {result.execution_time_ms:.2f}ms", style="dim")

    def print_sql(self, sql: str) -> None:
        """Print SQL with syntax highlighting."""
        if self.json_mode:
            self.print_data({"sql": sql})
        else:
            console.print(Syntax(sql, "sql", word_wrap=True))

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Optional details to display
        """
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, SQLChatError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, SQLChatError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            err_console.print(panel)

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, etc.).

        Args:
            data: Data to print
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            console.print(data)
