from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from ..models.import_job import ImportJob, JobStatus
from ..models.validation_issue import Severity, ValidationIssue

"""Import history: newest-first list of finished import jobs.

Entries are snapshots taken when a job reaches a terminal status and are never
modified afterwards. With a ``path`` the history is also persisted as JSON
Lines (one job per line, oldest first on disk) and reloaded on start.
"""

__all__ = [
    "HistoryError",
    "ImportHistory",
    "SEED_HISTORY",
    "seed_jobs",
]

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Raised when a history file cannot be read or a job is not recordable."""


def seed_jobs() -> list[ImportJob]:
    """Demo history shown before any import has run (newest first)."""
    return [
        ImportJob(
            id="1",
            file_name="productos_enero_2024.csv",
            status=JobStatus.COMPLETED,
            progress=100.0,
            total_rows=1250,
            processed_rows=1250,
            success_rows=1198,
            error_rows=52,
            created_at="2024-01-15T10:30:00Z",
            completed_at="2024-01-15T10:35:22Z",
        ),
        ImportJob(
            id="2",
            file_name="nuevos_productos.xlsx",
            status=JobStatus.PROCESSING,
            progress=65.0,
            total_rows=850,
            processed_rows=553,
            success_rows=490,
            error_rows=63,
            created_at="2024-01-16T14:20:00Z",
        ),
        ImportJob(
            id="3",
            file_name="inventario_actualizado.csv",
            status=JobStatus.FAILED,
            progress=25.0,
            total_rows=2100,
            processed_rows=525,
            success_rows=0,
            error_rows=525,
            created_at="2024-01-16T16:45:00Z",
            errors=[
                ValidationIssue(1, "price", "gratis", "Debe ser un número válido", Severity.ERROR),
                ValidationIssue(3, "sku", "", "Campo requerido", Severity.ERROR),
            ],
        ),
    ]


SEED_HISTORY: tuple[ImportJob, ...] = tuple(seed_jobs())


class ImportHistory:
    """Append-only, newest-first job history.

    Read access returns copies; the only write is record().
    """

    def __init__(self, jobs: list[ImportJob] | None = None, *, path: Path | None = None) -> None:
        self._jobs: list[ImportJob] = [j.snapshot() for j in (jobs or [])]
        self._lock = threading.Lock()
        self.path = Path(path) if path is not None else None
        if self.path is not None and self.path.exists():
            # ファイル上は古い順 -> メモリ上は新しい順
            self._jobs = self._load(self.path) + self._jobs

    @staticmethod
    def _load(path: Path) -> list[ImportJob]:
        loaded: list[ImportJob] = []
        try:
            with path.open("r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        loaded.append(ImportJob.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, ValueError) as e:
                        raise HistoryError(f"{path}:{line_no}: invalid history entry: {e}") from e
        except OSError as e:
            raise HistoryError(f"cannot read history {path}: {e}") from e
        loaded.reverse()
        return loaded

    def record(self, job: ImportJob) -> ImportJob:
        """Prepend a terminal job; returns the stored snapshot.

        Raises:
            HistoryError: If the job is still running
        """
        if not job.status.is_terminal:
            raise HistoryError(f"job {job.id} is not finished (status={job.status.value})")
        entry = job.snapshot()
        with self._lock:
            self._jobs.insert(0, entry)
            if self.path is not None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        logger.debug(f"history: recorded job {entry.id} status={entry.status.value}")
        return entry.snapshot()

    def jobs(self) -> list[ImportJob]:
        with self._lock:
            return [j.snapshot() for j in self._jobs]

    def latest(self) -> ImportJob | None:
        with self._lock:
            return self._jobs[0].snapshot() if self._jobs else None

    def __len__(self) -> int:
        return len(self._jobs)
