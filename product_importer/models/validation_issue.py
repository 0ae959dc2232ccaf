from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

"""ValidationIssue model: one detected problem in one cell.

Issues are produced by the validation pass and carried over into the import
job that starts from them. Serialization is a fixed five-key JSON object used
both for the JSON Lines issue log and for persisted history entries.
"""

__all__ = [
    "Severity",
    "ValidationIssue",
]


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"

    @property
    def label(self) -> str:
        return "Error" if self is Severity.ERROR else "Advertencia"


@dataclass(frozen=True)
class ValidationIssue:
    """A problem found in one (row, column) cell.

    Attributes:
        row: Row number with the header counted as row 1 (first data row = 2)
        column: Source column name
        value: The offending cell value
        message: Human-readable message
        severity: ERROR blocks processing, WARNING does not
    """
    row: int
    column: str
    value: str
    message: str
    severity: Severity

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "column": self.column,
            "value": self.value,
            "message": self.message,
            "severity": self.severity.value,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ValidationIssue:
        return ValidationIssue(
            row=int(data["row"]),
            column=str(data["column"]),
            value=str(data["value"]),
            message=str(data["message"]),
            severity=Severity(data["severity"]),
        )

    def to_json_line(self) -> str:
        """Serialize to a JSON Lines record (no extra keys)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)
