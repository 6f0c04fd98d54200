"""
Markdown formatter for documentation and sharing
"""

from typing import Any

from dbx.cli.formatters.base import BaseFormatter
from dbx.core.results import stringify


class MarkdownFormatter(BaseFormatter):
    """Format results as a Markdown table"""

    def format(self, results: list[dict[str, Any]], **kwargs) -> str:
        """
        Format results as a Markdown table

        Args:
            results: List of row dictionaries
            **kwargs: Options like 'show_footer', 'align'

        Returns:
            Markdown formatted table string
        """
        if not results:
            return "_No results found._"

        columns = self.get_columns(results)

        header = "| " + " | ".join(columns) + " |"

        # Default alignment is left, can be 'left', 'center', or 'right'
        align = kwargs.get("align", "left")
        separators = []
        for col in columns:
            col_align = align if isinstance(align, str) else align.get(col, "left")
            if col_align == "center":
                separators.append(":---:")
            elif col_align == "right":
                separators.append("---:")
            else:
                separators.append(":---")

        separator = "| " + " | ".join(separators) + " |"

        data_rows = []
        for row in results:
            values = []
            for col in columns:
                val = row.get(col)
                if val is None:
                    formatted_val = "_NULL_"
                else:
                    # Pipes would split the cell
                    formatted_val = stringify(val).replace("|", "\\|").replace("\n", " ")
                values.append(formatted_val)

            data_rows.append("| " + " | ".join(values) + " |")

        output = "\n".join([header, separator] + data_rows)

        if kwargs.get("show_footer", True):
            row_count = len(results)
            output += f"\n\n_{row_count} row{'s' if row_count != 1 else ''}_"

        return output
