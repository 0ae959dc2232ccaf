from .reader import (
    FileRejectedError,
    SheetHeaderError,
    TableReadError,
    check_source_file,
    read_table,
)

__all__ = [
    "FileRejectedError",
    "SheetHeaderError",
    "TableReadError",
    "check_source_file",
    "read_table",
]
