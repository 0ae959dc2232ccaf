from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..models.import_job import utc_timestamp
from ..models.validation_issue import ValidationIssue

"""Issue log: JSON Lines records of validation issues and job failures.

- fixed schema per line (no extra keys)
- one file per run: ``<logs_dir>/issues-YYYYMMDD-HHMMSS.log`` (UTC), created
  on the first flush that has something to write
- records are buffered and written in one go by flush()
"""

__all__ = [
    "IssueRecord",
    "IssueLogBuffer",
    "DEFAULT_LOGS_DIR",
]

DEFAULT_LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


@dataclass(frozen=True)
class IssueRecord:
    """One line of the issue log.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source file name
        job_id: Import job id, "" when the issue was found before processing
        row: Row number (header = 1). -1 for file-level problems
        column: Source column name ("" when not tied to a column)
        value: Offending cell value
        message: Human-readable message
        severity: "error" | "warning"
    """
    timestamp: str
    file: str
    job_id: str
    row: int
    column: str
    value: str
    message: str
    severity: str

    @staticmethod
    def from_issue(file: str, issue: ValidationIssue, job_id: str = "") -> IssueRecord:
        return IssueRecord(
            timestamp=utc_timestamp(),
            file=file,
            job_id=job_id,
            row=issue.row,
            column=issue.column,
            value=issue.value,
            message=issue.message,
            severity=issue.severity.value,
        )

    @staticmethod
    def file_level(file: str, message: str, job_id: str = "") -> IssueRecord:
        return IssueRecord(
            timestamp=utc_timestamp(),
            file=file,
            job_id=job_id,
            row=-1,
            column="",
            value="",
            message=message,
            severity="error",
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


class IssueLogBuffer:
    """In-memory buffer of IssueRecords; flush() appends them as JSON Lines.

    The file path is fixed on first access. append/extend/flush share one lock,
    so a flush on the processing thread cannot drop records added meanwhile.
    """

    def __init__(self, logs_dir: Path = DEFAULT_LOGS_DIR) -> None:
        self.logs_dir = Path(logs_dir)
        self._records: list[IssueRecord] = []
        self._file_path: Path | None = None
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.logs_dir / f"issues-{stamp}.log"
        return self._file_path

    def append(self, record: IssueRecord) -> None:
        with self._lock:
            self._records.append(record)

    def extend(self, file: str, issues: list[ValidationIssue], job_id: str = "") -> None:
        records = [IssueRecord.from_issue(file, issue, job_id) for issue in issues]
        with self._lock:
            self._records.extend(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the file path, None if nothing was written."""
        with self._lock:
            if not self._records:
                return None
            records, self._records = self._records, []
            fp = self.file_path
            fp.parent.mkdir(parents=True, exist_ok=True)
            with fp.open("a", encoding="utf-8") as f:
                for r in records:
                    f.write(r.to_json_line() + "\n")
        return fp
