from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .validation_issue import Severity, ValidationIssue

"""ImportJob domain model and JobStatus enum.

An ImportJob is one run of the pipeline from processing start to a terminal
status. It is mutated in place by the job runner while processing and is
copied into the history once terminal; history copies never change again.

State transitions of a live job: processing → (completed | failed)
"""

__all__ = [
    "JobStatus",
    "ImportJob",
    "create_job",
    "utc_timestamp",
    "parse_timestamp",
]


class JobStatus(Enum):
    """Status of an import job.

    UPLOADING/MAPPING/VALIDATING only appear on records coming from elsewhere
    (seed or persisted history); a live job starts at PROCESSING.
    """
    UPLOADING = "uploading"
    MAPPING = "mapping"
    VALIDATING = "validating"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_STATUS_LABELS = {
    JobStatus.UPLOADING: "Subiendo",
    JobStatus.MAPPING: "Mapeando",
    JobStatus.VALIDATING: "Validando",
    JobStatus.PROCESSING: "Procesando",
    JobStatus.COMPLETED: "Completado",
    JobStatus.FAILED: "Fallido",
}


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO8601 UTC timestamp with 'Z' suffix."""
    moment = moment or datetime.now(UTC)
    return moment.isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass
class ImportJob:
    """One run of the import pipeline.

    Invariants:
        processed_rows <= total_rows
        success_rows + error_rows == processed_rows once COMPLETED
        progress never decreases and is exactly 100 only when COMPLETED
    """
    id: str
    file_name: str
    status: JobStatus
    progress: float
    total_rows: int
    processed_rows: int = 0
    success_rows: int = 0
    error_rows: int = 0
    created_at: str = field(default_factory=utc_timestamp)
    completed_at: str | None = None
    errors: list[ValidationIssue] = field(default_factory=list)

    def snapshot(self) -> ImportJob:
        """Detached copy (issue list copied, issues themselves are frozen)."""
        return replace(self, errors=list(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_name": self.file_name,
            "status": self.status.value,
            "progress": self.progress,
            "total_rows": self.total_rows,
            "processed_rows": self.processed_rows,
            "success_rows": self.success_rows,
            "error_rows": self.error_rows,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "errors": [e.to_dict() for e in self.errors],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ImportJob:
        return ImportJob(
            id=str(data["id"]),
            file_name=data["file_name"],
            status=JobStatus(data["status"]),
            progress=float(data.get("progress", 0)),
            total_rows=int(data.get("total_rows", 0)),
            processed_rows=int(data.get("processed_rows", 0)),
            success_rows=int(data.get("success_rows", 0)),
            error_rows=int(data.get("error_rows", 0)),
            created_at=data.get("created_at") or utc_timestamp(),
            completed_at=data.get("completed_at"),
            errors=[ValidationIssue.from_dict(e) for e in data.get("errors") or []],
        )


def create_job(file_name: str, total_rows: int, issues: list[ValidationIssue]) -> ImportJob:
    """Create a job at processing start.

    ``error_rows`` is fixed here from the error-severity issues present at this
    moment; re-validating later only affects new jobs.
    """
    return ImportJob(
        id=uuid.uuid4().hex,
        file_name=file_name,
        status=JobStatus.PROCESSING,
        progress=0.0,
        total_rows=total_rows,
        error_rows=sum(1 for i in issues if i.severity is Severity.ERROR),
        errors=list(issues),
    )
