"""
Rich table formatter for terminal output
"""

from typing import Any, Dict, List

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dbx.cli.formatters.base import BaseFormatter
from dbx.core.results import DEFAULT_MAX_COLUMN_WIDTH, compute_columns, stringify


class TableFormatter(BaseFormatter):
    """Format results as a Rich table"""

    def format(self, results: List[Dict[str, Any]], **kwargs) -> str:
        """
        Format results as a Rich table

        Args:
            results: List of row dictionaries
            **kwargs: Options like 'no_color', 'show_footer', 'max_width'

        Returns:
            Formatted table string
        """
        if not results:
            return "No results found."

        console = Console(force_terminal=not kwargs.get("no_color", False), no_color=kwargs.get("no_color", False))
        columns = compute_columns(results, kwargs.get("max_width", DEFAULT_MAX_COLUMN_WIDTH))

        # Narrow terminals get a borderless layout
        table_box = box.SIMPLE if console.width < 80 or len(columns) > 8 else box.HEAVY_HEAD
        table = Table(show_header=True, header_style="bold magenta", box=table_box)

        for column in columns:
            table.add_column(
                column.name,
                style="cyan",
                overflow="ellipsis",
                max_width=column.width,
                no_wrap=True,
            )

        for row in results:
            values = [
                escape(stringify(row.get(column.name))) if row.get(column.name) is not None else "[dim]NULL[/dim]"
                for column in columns
            ]
            table.add_row(*values)

        with console.capture() as capture:
            console.print(table)

        output = capture.get()

        if kwargs.get("show_footer", True):
            row_count = len(results)
            footer = f"[dim]{row_count} row{'s' if row_count != 1 else ''}[/dim]"
            with console.capture() as capture:
                console.print(footer)
            output += capture.get()

        return output
