"""
Base formatter interface for CLI output

All formatters must implement the format() method. Columns follow the same
rule as the interactive table: the sorted keys of the first row.
"""

from typing import Any, Dict, List

from dbx.core.results import compute_columns


class BaseFormatter:
    """Base class for all output formatters"""

    def format(self, results: List[Dict[str, Any]], **kwargs) -> str:
        """
        Format result rows for output

        Args:
            results: List of row dictionaries
            **kwargs: Additional formatter-specific options

        Returns:
            Formatted string ready for output
        """
        raise NotImplementedError("Formatters must implement format() method")

    def get_name(self) -> str:
        """Get formatter name"""
        return self.__class__.__name__.replace("Formatter", "").lower()

    def get_columns(self, results: List[Dict[str, Any]]) -> List[str]:
        """Column names shared by every row-based format"""
        return [column.name for column in compute_columns(results)]
