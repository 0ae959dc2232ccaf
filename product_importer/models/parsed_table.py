from __future__ import annotations

from dataclasses import dataclass

"""ParsedTable model: tabular content of a source file.

Row 0 is the header, every other row is a data row. Cells are always strings
(blank cells are ""). A ParsedTable is created once per selected file and never
mutated afterwards.
"""

__all__ = [
    "ParsedTable",
    "NO_SAMPLE",
]

NO_SAMPLE = "Sin datos"


@dataclass(frozen=True)
class ParsedTable:
    rows: tuple[tuple[str, ...], ...]

    @staticmethod
    def from_rows(rows: list[list[str]]) -> ParsedTable:
        return ParsedTable(rows=tuple(tuple(str(c) for c in r) for r in rows))

    @property
    def header(self) -> tuple[str, ...]:
        if not self.rows:
            return ()
        return self.rows[0]

    @property
    def data_rows(self) -> tuple[tuple[str, ...], ...]:
        return self.rows[1:]

    @property
    def total_rows(self) -> int:
        """Number of data rows (header excluded)."""
        return max(len(self.rows) - 1, 0)

    def cell(self, data_index: int, column_index: int) -> str:
        """Cell of a data row; short rows read as blank."""
        row = self.rows[data_index + 1]
        if column_index < len(row):
            return row[column_index]
        return ""

    def sample(self, column_index: int) -> str:
        """First data value of a column, used as the mapping preview example."""
        if self.total_rows == 0:
            return NO_SAMPLE
        value = self.cell(0, column_index)
        return value if value else NO_SAMPLE
