from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path

"""SourceFile domain model.

A SourceFile is the user-selected spreadsheet: its name, byte size and the
declared MIME type. It is created on selection and discarded on reset or when
another file is selected.
"""

__all__ = [
    "SourceFile",
]

# mimetypes はプラットフォームによって xlsx を知らないことがあるため補完
_EXTRA_TYPES = {
    ".csv": "text/csv",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@dataclass(frozen=True)
class SourceFile:
    """The spreadsheet selected for import.

    Attributes:
        name: File name as presented by the user (no directory part)
        size: Size in bytes
        mime_type: Declared MIME type; empty string when unknown
        path: Location on disk, None for in-memory selections
    """
    name: str
    size: int
    mime_type: str = ""
    path: Path | None = None

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower()

    @staticmethod
    def from_path(path: Path) -> SourceFile:
        """Build a SourceFile from a file on disk.

        The MIME type is guessed from the file name, the size comes from stat().

        Raises:
            FileNotFoundError: If the path does not exist
        """
        path = Path(path)
        size = path.stat().st_size
        mime, _ = mimetypes.guess_type(path.name)
        if mime is None:
            mime = _EXTRA_TYPES.get(path.suffix.lower(), "")
        return SourceFile(name=path.name, size=size, mime_type=mime, path=path)
