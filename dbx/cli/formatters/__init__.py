"""
Output formatters for CLI

Available formatters:
- JSONFormatter: Pretty-printed JSON (default for one-shot queries and exports)
- TableFormatter: Rich tables
- CSVFormatter: Unix-friendly CSV
- MarkdownFormatter: GitHub Flavored Markdown tables
"""

from dbx.cli.formatters.base import BaseFormatter
from dbx.cli.formatters.csv import CSVFormatter
from dbx.cli.formatters.json import JSONFormatter
from dbx.cli.formatters.markdown import MarkdownFormatter
from dbx.cli.formatters.table import TableFormatter

__all__ = ["BaseFormatter", "TableFormatter", "JSONFormatter", "CSVFormatter", "MarkdownFormatter"]


def get_formatter(format_name: str) -> BaseFormatter:
    """
    Get formatter by name

    Args:
        format_name: Name of formatter (json, table, csv, markdown)

    Returns:
        Formatter instance

    Raises:
        ValueError: If formatter not found
    """
    formatters = {
        "json": JSONFormatter,
        "table": TableFormatter,
        "csv": CSVFormatter,
        "markdown": MarkdownFormatter,
    }

    if format_name not in formatters:
        available = ", ".join(formatters.keys())
        raise ValueError(f"Unknown format: {format_name}. Available formats: {available}")

    return formatters[format_name]()
