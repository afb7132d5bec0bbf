"""
Fixed-width text tables for CLI listings (resumes, branches, commit logs).

Values wider than their column are cut with an ellipsis so every row stays
on one line; trailing padding is stripped.
"""

from typing import Any, List, Optional

ELLIPSIS = "…"


class Column:
    """Column definition for table formatting."""

    def __init__(self, name: str, width: int, align: str = "<"):
        """
        Args:
            name: Column header name
            width: Column width in characters
            align: Alignment ('<' left, '>' right, '^' center)
        """
        self.name = name
        self.width = width
        self.align = align

    def format_header(self) -> str:
        return f"{self.name:{self.align}{self.width}}"

    def format_value(self, value: Any) -> str:
        text = "" if value is None else str(value)
        if len(text) > self.width:
            text = text[: max(self.width - 1, 0)] + ELLIPSIS
        return f"{text:{self.align}{self.width}}"


class TableFormatter:
    """Builder for text tables; every add_* method returns self for chaining."""

    def __init__(self, columns: List[Column], total_width: Optional[int] = None):
        """
        Args:
            columns: List of Column definitions
            total_width: Separator width (default: sum of column widths plus gaps)
        """
        self.columns = columns
        self.total_width = total_width or sum(c.width for c in columns) + len(columns) - 1
        self.lines: List[str] = []

    def _append_row(self, cells: List[str]) -> None:
        self.lines.append(" ".join(cells).rstrip())

    def add_table_header(self) -> "TableFormatter":
        self._append_row([col.format_header() for col in self.columns])
        return self

    def add_separator(self, char: str = "-") -> "TableFormatter":
        self.lines.append(char * self.total_width)
        return self

    def add_row(self, values: List[Any]) -> "TableFormatter":
        """
        Add data row with column values.

        Raises:
            ValueError: If number of values doesn't match columns
        """
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")

        self._append_row([col.format_value(val) for col, val in zip(self.columns, values)])
        return self

    def add_summary(self, text: str) -> "TableFormatter":
        """Add a line after the rows, separated by a blank line."""
        self.lines.append("")
        self.lines.append(text)
        return self

    def render(self) -> str:
        return "\n".join(self.lines)
