from __future__ import annotations

import math
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.parsed_table import ParsedTable
from ..models.source_file import SourceFile

"""Spreadsheet reader: file intake checks and CSV/XLSX parsing.

- Only CSV and Excel files are accepted, up to 20 MiB by default.
- Row 1 of the sheet is the header, every following row is data.
- Every cell comes back as a string; blank cells are "".

pandas does the actual parsing (openpyxl engine for .xlsx).
"""

__all__ = [
    "FileRejectedError",
    "SheetHeaderError",
    "TableReadError",
    "ALLOWED_MIME_TYPES",
    "ALLOWED_SUFFIXES",
    "DEFAULT_MAX_BYTES",
    "check_source_file",
    "read_table",
]

ALLOWED_MIME_TYPES = frozenset({
    "text/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
})
ALLOWED_SUFFIXES = frozenset({".csv", ".xlsx", ".xls"})
DEFAULT_MAX_BYTES = 20 * 1024 * 1024

MSG_BAD_TYPE = "Solo se permiten archivos CSV y Excel (.xlsx)"
MSG_TOO_LARGE = "El archivo no puede ser mayor a 20MB"


class FileRejectedError(Exception):
    """Raised when a selected file has the wrong type or is too large."""


class SheetHeaderError(Exception):
    """Raised when the file is empty or has no header row."""


class TableReadError(Exception):
    """Raised when the file cannot be parsed as CSV/Excel."""


def check_source_file(source: SourceFile, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    """Validate type and size of a selected file.

    The type check passes when either the MIME type or the file suffix is
    allowed.

    Raises:
        FileRejectedError: With the user-facing message
    """
    if source.mime_type not in ALLOWED_MIME_TYPES and source.suffix not in ALLOWED_SUFFIXES:
        raise FileRejectedError(MSG_BAD_TYPE)
    if source.size > max_bytes:
        if max_bytes == DEFAULT_MAX_BYTES:
            raise FileRejectedError(MSG_TOO_LARGE)
        raise FileRejectedError(
            f"El archivo no puede ser mayor a {max_bytes // (1024 * 1024)}MB"
        )


def _sniff_delimiter(path: Path) -> str:
    # カンマとセミコロンのみ判定 (Excel の地域設定で ; 区切りになるケース)
    with path.open("r", encoding="utf-8-sig", errors="replace") as f:
        first = f.readline()
    return ";" if first.count(";") > first.count(",") else ","


def _cell_to_str(value: Any) -> str:
    if value is None or value is pd.NaT:
        return ""
    if pd.api.types.is_bool(value):
        return "true" if value else "false"
    if pd.api.types.is_float(value):
        value = float(value)
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _read_csv(path: Path) -> pd.DataFrame:
    options: dict[str, Any] = {
        "header": None,
        "dtype": str,
        "keep_default_na": False,
        "sep": _sniff_delimiter(path),
        "encoding": "utf-8-sig",
        "engine": "python",
    }
    # 列数はヘッダ行で決まる
    width = pd.read_csv(path, nrows=1, **options).shape[1]

    def _trim_overflow(fields: list[str]) -> list[str]:
        # 末尾の区切り文字 (Mesa,S-1,10,2,) による空セルのみ許容
        if any(f.strip() for f in fields[width:]):
            raise pd.errors.ParserError(
                f"expected {width} fields, saw {len(fields)}: {fields!r}"
            )
        return fields[:width]

    return pd.read_csv(path, skip_blank_lines=False, on_bad_lines=_trim_overflow, **options)


def _read_excel(path: Path) -> pd.DataFrame:
    # 先頭シートのみ対象
    return pd.read_excel(path, sheet_name=0, header=None, dtype=object)


def read_table(path: Path, *, suffix: str | None = None) -> ParsedTable:
    """Parse a CSV or Excel file into a ParsedTable.

    Parameters
    ----------
    path: file location
    suffix: override for the format decision (".csv", ".xlsx", ".xls");
        defaults to the path suffix, anything but Excel is read as CSV

    Raises:
        SheetHeaderError: empty file / blank header row
        TableReadError: the parser rejected the file
    """
    path = Path(path)
    kind = (suffix or path.suffix).lower()
    try:
        if kind in (".xlsx", ".xls"):
            df = _read_excel(path)
        else:
            df = _read_csv(path)
    except pd.errors.EmptyDataError as e:
        raise SheetHeaderError(f"'{path.name}' is empty") from e
    except (pd.errors.ParserError, ValueError, UnicodeDecodeError, OSError, zipfile.BadZipFile) as e:
        raise TableReadError(f"cannot read '{path.name}': {e}") from e
    except ImportError as e:
        # .xls は xlrd (optional extra) が必要
        raise TableReadError(f"cannot read '{path.name}': {e}") from e

    rows = [[_cell_to_str(v) for v in raw] for raw in df.itertuples(index=False, name=None)]

    # 末尾の空行のみ除去 (途中の空行は行番号維持のため残す)
    while rows and all(c.strip() == "" for c in rows[-1]):
        rows.pop()

    if not rows or all(c.strip() == "" for c in rows[0]):
        raise SheetHeaderError(f"'{path.name}' lacks a header row")

    header = [c.strip() for c in rows[0]]
    return ParsedTable.from_rows([header, *rows[1:]])
