"""
Result model - Tabular projection of a classified response

Turns row dicts into a column set with display widths, renders truncated
cells, sorts rows by a column and renders a single row in detail.

Column rules:
- The column set is the sorted key set of the FIRST row only. Rows with
  extra keys show them in the detail view but never in the table.
- Width is max(8, len(name), longest value among the first 5 rows), capped
  at max_column_width. Later rows never influence the width, so an outlier
  further down is truncated.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from dbx.core.types import ResponseShape

Row = Dict[str, Any]

MIN_COLUMN_WIDTH = 8
DEFAULT_MAX_COLUMN_WIDTH = 40
WIDTH_SAMPLE_ROWS = 5
DETAIL_VALUE_LIMIT = 200
ELLIPSIS = "…"


def stringify(value: Any) -> str:
    """Format a cell value for display and comparison."""
    if value is None:
        return "NULL"
    return str(value)


def truncate(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` characters, the last one being an ellipsis."""
    if len(text) <= width:
        return text
    return text[: width - 1] + ELLIPSIS


@dataclass(frozen=True)
class Column:
    """A result column and its display width."""

    name: str
    width: int


def compute_columns(rows: List[Row], max_column_width: int = DEFAULT_MAX_COLUMN_WIDTH) -> List[Column]:
    """
    Derive columns from the first row and size them from a sample

    Args:
        rows: Result rows (only the first one defines the column set)
        max_column_width: Upper bound for any column width

    Returns:
        Columns in lexicographic order
    """
    if not rows:
        return []

    max_column_width = max(max_column_width, MIN_COLUMN_WIDTH)
    sample = rows[:WIDTH_SAMPLE_ROWS]

    columns = []
    for name in sorted(rows[0].keys()):
        width = max(MIN_COLUMN_WIDTH, len(name))
        for row in sample:
            width = max(width, len(stringify(row.get(name))))
        columns.append(Column(name=name, width=min(width, max_column_width)))
    return columns


@dataclass
class ResultModel:
    """
    In-memory table for one query result.

    The row list is owned by the model and reordered in place by sort().
    Selection is tracked by the session, never here.
    """

    rows: List[Row]
    max_column_width: int = DEFAULT_MAX_COLUMN_WIDTH
    columns: List[Column] = field(default_factory=list)
    sort_column: Optional[int] = None
    sort_ascending: bool = True

    def __post_init__(self) -> None:
        if not self.columns:
            self.columns = compute_columns(self.rows, self.max_column_width)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def cell(self, row_index: int, column_index: int) -> str:
        """Display text of one cell, truncated to its column width."""
        column = self.columns[column_index]
        return truncate(stringify(self.rows[row_index].get(column.name)), column.width)

    def display_row(self, row_index: int) -> List[str]:
        """Display text of every cell in a row, in column order."""
        return [self.cell(row_index, index) for index in range(len(self.columns))]

    def sort(self, column_index: int) -> None:
        """
        Sort rows by a column, toggling direction on repeated activation.

        Values are compared as display strings, so numbers sort as text
        ("10" < "9"). Column widths are recomputed from the new first rows;
        the column set itself does not change.

        Args:
            column_index: Index into ``columns``

        Raises:
            IndexError: If the column does not exist
        """
        if column_index < 0 or column_index >= len(self.columns):
            raise IndexError(f"Column index out of range: {column_index}")

        if self.sort_column == column_index:
            self.sort_ascending = not self.sort_ascending
        else:
            self.sort_column = column_index
            self.sort_ascending = True

        name = self.columns[column_index].name
        self.rows.sort(key=lambda row: stringify(row.get(name)), reverse=not self.sort_ascending)

        widths = {column.name: column.width for column in compute_columns(self.rows, self.max_column_width)}
        self.columns = [Column(name=column.name, width=widths.get(column.name, column.width)) for column in self.columns]

    def detail(self, row_index: int) -> List[Tuple[str, str]]:
        """
        All fields of one row as (key, value) pairs.

        Includes keys that are not part of the column set. Keys are sorted;
        values longer than DETAIL_VALUE_LIMIT are cut and get an ellipsis.
        """
        row = self.rows[row_index]
        pairs = []
        for key in sorted(row.keys()):
            text = stringify(row[key])
            if len(text) > DETAIL_VALUE_LIMIT:
                text = text[:DETAIL_VALUE_LIMIT] + ELLIPSIS
            pairs.append((key, text))
        return pairs

    def title(self) -> str:
        """Pane title, e.g. ``Results (3 rows) [sorted by id ↑]``."""
        text = f"Results ({len(self.rows)} rows)"
        if self.sort_column is not None:
            arrow = "↑" if self.sort_ascending else "↓"
            text += f" [sorted by {self.columns[self.sort_column].name} {arrow}]"
        return text


def extract_rows(payload: Any) -> List[Row]:
    """Keep only the object elements of a JSON array."""
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def project(
    shape: ResponseShape, payload: Any, max_column_width: int = DEFAULT_MAX_COLUMN_WIDTH
) -> Optional[ResultModel]:
    """
    Build a ResultModel from a classified response

    Args:
        shape: Response shape from the client
        payload: Classified payload
        max_column_width: Upper bound for column widths

    Returns:
        A model for tabular data (possibly with zero rows), or None when the
        response has no tabular projection
    """
    if shape is ResponseShape.TABULAR:
        return ResultModel(rows=list(payload), max_column_width=max_column_width)

    if shape is ResponseShape.STRUCTURED:
        # Mixed arrays degrade to whatever subset are objects
        rows = extract_rows(payload)
        if rows:
            return ResultModel(rows=rows, max_column_width=max_column_width)

    return None
