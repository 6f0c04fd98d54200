"""
CSV formatter for Unix-friendly output
"""

import csv
import io
from typing import Any, Dict, List

from dbx.cli.formatters.base import BaseFormatter
from dbx.core.results import stringify


class CSVFormatter(BaseFormatter):
    """Format results as CSV"""

    def format(self, results: List[Dict[str, Any]], **kwargs) -> str:
        """
        Format results as CSV

        Keys missing from the first row are dropped, like in the table view.

        Args:
            results: List of row dictionaries
            **kwargs: Options like 'delimiter', 'quote_all'

        Returns:
            CSV string
        """
        if not results:
            return ""

        columns = self.get_columns(results)

        output = io.StringIO()
        writer = csv.writer(
            output,
            delimiter=kwargs.get("delimiter", ","),
            quoting=csv.QUOTE_MINIMAL if not kwargs.get("quote_all") else csv.QUOTE_ALL,
        )

        writer.writerow(columns)
        for row in results:
            writer.writerow(["" if row.get(col) is None else stringify(row.get(col)) for col in columns])

        return output.getvalue()
