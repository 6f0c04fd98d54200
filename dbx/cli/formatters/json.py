"""
JSON formatter for machine-readable output
"""

from typing import Any

from dbx.cli.formatters.base import BaseFormatter
from dbx.core.export import dump_json


class JSONFormatter(BaseFormatter):
    """Format results as JSON"""

    def format(self, results: list[dict[str, Any]], **kwargs) -> str:
        """
        Format results as JSON

        Args:
            results: List of row dictionaries
            **kwargs: Options like 'compact', 'indent'

        Returns:
            JSON string
        """
        return self.format_payload(results, **kwargs)

    def format_payload(self, payload: Any, **kwargs) -> str:
        """
        Format any decoded JSON value (rows, objects, scalars)

        Args:
            payload: Decoded JSON value
            **kwargs: Options like 'compact', 'indent'

        Returns:
            JSON string
        """
        return dump_json(payload, indent=kwargs.get("indent", 2), compact=kwargs.get("compact", False))
