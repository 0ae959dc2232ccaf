from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from typing import assert_never
from urllib.parse import urlsplit

from ..models.column_mapping import ColumnMapping
from ..models.field_catalog import DataType, get_field
from ..models.parsed_table import ParsedTable
from ..models.validation_issue import Severity, ValidationIssue

"""Per-cell validation of a parsed table against the column mappings.

Single pass over every data row crossed with every mapped column:
1. required field + blank cell -> error
2. non-blank cell -> type rule of the mapping's data type
   (number / boolean -> error, url -> warning, text / email -> no check)

Row numbers count the header as row 1, so the first data row is row 2.
"""

__all__ = [
    "MSG_REQUIRED",
    "MSG_NUMBER",
    "MSG_BOOLEAN",
    "MSG_URL",
    "BOOLEAN_TOKENS",
    "parse_number",
    "is_absolute_url",
    "check_cell",
    "validate_table",
    "count_errors",
    "count_warnings",
    "has_blocking_errors",
]

MSG_REQUIRED = "Campo requerido"
MSG_NUMBER = "Debe ser un número válido mayor o igual a 0"
MSG_BOOLEAN = "Debe ser true/false o sí/no"
MSG_URL = "Debe ser una URL válida"

BOOLEAN_TOKENS = frozenset({"true", "false", "verdadero", "falso", "1", "0", "sí", "si", "no"})

FIRST_DATA_ROW = 2

_DECIMAL_RE = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")
_RADIX_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_HOST_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})


def parse_number(value: str) -> float | None:
    """Parse a numeric cell; None when it is not a finite number.

    Accepts signed decimals with optional fraction/exponent and 0x/0o/0b
    integers, surrounded by optional whitespace.
    """
    s = value.strip()
    if _RADIX_RE.match(s):
        return float(int(s, 0))
    if not _DECIMAL_RE.match(s):
        return None
    number = float(s)
    if not math.isfinite(number):
        return None
    return number


def is_absolute_url(value: str) -> bool:
    """True for a URL with a scheme (and a host for network schemes)."""
    s = value.strip()
    if not _SCHEME_RE.match(s):
        return False
    try:
        parts = urlsplit(s)
        host = parts.hostname
        parts.port  # noqa: B018 - raises ValueError on a malformed port
    except ValueError:
        return False
    if parts.scheme.lower() in _HOST_SCHEMES:
        if not host or any(ch.isspace() for ch in host):
            return False
    return True


def check_cell(value: str, data_type: DataType) -> tuple[str, Severity] | None:
    """Type rule for one non-blank cell; None when the value is acceptable."""
    if data_type is DataType.NUMBER:
        number = parse_number(value)
        if number is None or number < 0:
            return MSG_NUMBER, Severity.ERROR
        return None
    elif data_type is DataType.BOOLEAN:
        if value.lower() not in BOOLEAN_TOKENS:
            return MSG_BOOLEAN, Severity.ERROR
        return None
    elif data_type is DataType.URL:
        if not is_absolute_url(value):
            return MSG_URL, Severity.WARNING
        return None
    elif data_type is DataType.TEXT or data_type is DataType.EMAIL:
        return None
    else:
        assert_never(data_type)


def validate_table(table: ParsedTable, mappings: Sequence[ColumnMapping]) -> list[ValidationIssue]:
    """Validate every data row of ``table`` against ``mappings``.

    ``mappings[i]`` describes column ``i``. The result is deterministic:
    issues are ordered by row, then column, then rule (required before type).
    """
    issues: list[ValidationIssue] = []
    for data_index in range(table.total_rows):
        row_number = data_index + FIRST_DATA_ROW
        for col_index, mapping in enumerate(mappings):
            if not mapping.is_mapped:
                continue
            value = table.cell(data_index, col_index)
            field = get_field(mapping.target_field)

            if field is not None and field.required and not value.strip():
                issues.append(ValidationIssue(
                    row=row_number,
                    column=mapping.source_column,
                    value=value,
                    message=MSG_REQUIRED,
                    severity=Severity.ERROR,
                ))

            if value.strip():
                problem = check_cell(value, mapping.data_type)
                if problem is not None:
                    message, severity = problem
                    issues.append(ValidationIssue(
                        row=row_number,
                        column=mapping.source_column,
                        value=value,
                        message=message,
                        severity=severity,
                    ))
    return issues


def count_errors(issues: Iterable[ValidationIssue]) -> int:
    return sum(1 for i in issues if i.severity is Severity.ERROR)


def count_warnings(issues: Iterable[ValidationIssue]) -> int:
    return sum(1 for i in issues if i.severity is Severity.WARNING)


def has_blocking_errors(issues: Iterable[ValidationIssue]) -> bool:
    return count_errors(issues) > 0
