from __future__ import annotations

import json
import logging
import math
import random
import threading
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import Any, assert_never

from ..models.column_mapping import ColumnMapping
from ..models.field_catalog import DataType
from ..models.import_job import ImportJob, JobStatus, utc_timestamp
from ..models.parsed_table import ParsedTable
from ..models.validation_issue import Severity, ValidationIssue
from .validation import FIRST_DATA_ROW, parse_number

"""Import job processing: row conversion, row sinks and the progress ticker.

A JobRunner advances one ImportJob one tick at a time. Each tick converts the
next slice of data rows into product records and hands them to a sink, then
raises the job's progress. The ProcessingTicker calls tick() on a background
thread at a fixed interval until the job is terminal or the ticker is
cancelled.

Counters follow the job contract:
    processed_rows = rows handed to the sink so far
    success_rows   = max(0, processed_rows - error_rows)
On completion processed_rows = total_rows and progress = 100.
A sink exception fails the job; progress keeps its last value.
"""

__all__ = [
    "ProcessingError",
    "ProcessingMode",
    "ProductSink",
    "NullSink",
    "JsonLinesProductSink",
    "coerce_row",
    "JobRunner",
    "ProcessingTicker",
    "SIMULATED_MAX_STEP",
]

logger = logging.getLogger(__name__)

SIMULATED_MAX_STEP = 15.0
TRUE_TOKENS = frozenset({"true", "verdadero", "1", "sí", "si"})
MSG_ROW_FAILED = "Error al procesar la fila"


class ProcessingError(Exception):
    """Raised by sinks (or the runner) when a row cannot be processed."""


class ProcessingMode(Enum):
    BATCH = "batch"          # true progress: batch_size rows per tick
    SIMULATED = "simulated"  # random increments of up to 15% per tick


class ProductSink:
    """Destination for converted product records."""

    def write(self, product: dict[str, Any]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass


class NullSink(ProductSink):
    """Counts and discards records (dry run)."""

    def __init__(self) -> None:
        self.count = 0

    def write(self, product: dict[str, Any]) -> None:
        self.count += 1


class JsonLinesProductSink(ProductSink):
    """Appends one JSON object per product to a file.

    The file is opened on the first write, so a job that never writes leaves
    no file behind.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._fh = None

    def write(self, product: dict[str, Any]) -> None:
        if self._fh is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self.path.open("a", encoding="utf-8")
        self._fh.write(json.dumps(product, ensure_ascii=False) + "\n")

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


def _coerce_value(value: str, data_type: DataType) -> Any:
    s = value.strip()
    if s == "":
        return None
    if data_type is DataType.NUMBER:
        number = parse_number(s)
        if number is None:
            return s
        return int(number) if number.is_integer() else number
    elif data_type is DataType.BOOLEAN:
        return value.lower() in TRUE_TOKENS
    elif data_type in (DataType.TEXT, DataType.EMAIL, DataType.URL):
        return s
    else:
        assert_never(data_type)


def coerce_row(row: Sequence[str], mappings: Sequence[ColumnMapping]) -> dict[str, Any]:
    """Convert one data row into a product record keyed by target field."""
    product: dict[str, Any] = {}
    for index, mapping in enumerate(mappings):
        if not mapping.is_mapped:
            continue
        value = row[index] if index < len(row) else ""
        product[mapping.target_field] = _coerce_value(value, mapping.data_type)
    return product


class JobRunner:
    """Drives one ImportJob to a terminal state, one tick at a time.

    All mutation happens under a lock; revoke() takes the same lock, so once it
    returns no tick can touch the job again.
    """

    def __init__(
        self,
        job: ImportJob,
        table: ParsedTable,
        mappings: Sequence[ColumnMapping],
        sink: ProductSink,
        *,
        mode: ProcessingMode = ProcessingMode.BATCH,
        batch_size: int = 100,
        rng: random.Random | None = None,
        on_finished: Callable[[ImportJob], None] | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.job = job
        self.table = table
        self.mappings = list(mappings)
        self.sink = sink
        self.mode = mode
        self.batch_size = batch_size
        self.rng = rng or random.Random()
        self.on_finished = on_finished
        self._cursor = 0
        self._revoked = False
        self._lock = threading.Lock()
        self._error_rows = {i.row for i in job.errors if i.severity is Severity.ERROR}

    @property
    def revoked(self) -> bool:
        return self._revoked

    @property
    def done(self) -> bool:
        return self._revoked or self.job.status.is_terminal

    def revoke(self) -> None:
        """Stop this runner for good; later ticks are no-ops."""
        with self._lock:
            if not self._revoked:
                self._revoked = True
                self.sink.close()

    def _next_progress(self) -> float:
        total = self.job.total_rows
        if total == 0:
            return 100.0
        if self.mode is ProcessingMode.BATCH:
            end = min(self._cursor + self.batch_size, total)
            return 100.0 if end >= total else end * 100 / total
        elif self.mode is ProcessingMode.SIMULATED:
            return min(self.job.progress + self.rng.random() * SIMULATED_MAX_STEP, 100.0)
        else:
            assert_never(self.mode)

    def _target_rows(self, progress: float) -> int:
        total = self.job.total_rows
        if progress >= 100:
            return total
        if self.mode is ProcessingMode.BATCH:
            return min(self._cursor + self.batch_size, total)
        return math.floor(progress / 100 * total)

    def tick(self) -> bool:
        """Advance the job once. Returns False when nothing is left to do."""
        with self._lock:
            if self._revoked or self.job.status.is_terminal:
                return False
            job = self.job
            progress = self._next_progress()
            target = self._target_rows(progress)

            for data_index in range(self._cursor, target):
                row_number = data_index + FIRST_DATA_ROW
                self._cursor = data_index + 1
                if row_number in self._error_rows:
                    continue
                try:
                    self.sink.write(coerce_row(self.table.data_rows[data_index], self.mappings))
                except Exception as e:
                    self._fail(row_number, e)
                    return False

            job.progress = max(job.progress, progress)
            job.processed_rows = target
            job.success_rows = max(0, target - job.error_rows)
            if job.progress >= 100:
                self._complete()
                return False
            return True

    def run_to_completion(self, on_tick: Callable[[ImportJob], None] | None = None) -> ImportJob:
        """Tick synchronously until the job is terminal (or revoked)."""
        while self.tick():
            if on_tick is not None:
                on_tick(self.job)
        if on_tick is not None:
            on_tick(self.job)
        return self.job

    def _complete(self) -> None:
        job = self.job
        job.status = JobStatus.COMPLETED
        job.progress = 100.0
        job.processed_rows = job.total_rows
        job.success_rows = max(0, job.total_rows - job.error_rows)
        job.completed_at = utc_timestamp()
        self.sink.close()
        logger.info(
            f"job {job.id} completed file={job.file_name} "
            f"success={job.success_rows} errors={job.error_rows}"
        )
        self._finish()

    def _fail(self, row_number: int, exc: Exception) -> None:
        job = self.job
        job.status = JobStatus.FAILED
        job.processed_rows = self._cursor
        job.error_rows += 1
        job.success_rows = max(0, job.processed_rows - job.error_rows)
        job.completed_at = utc_timestamp()
        job.errors.append(ValidationIssue(
            row=row_number,
            column="",
            value="",
            message=f"{MSG_ROW_FAILED}: {exc}",
            severity=Severity.ERROR,
        ))
        self.sink.close()
        logger.error(f"job {job.id} failed at row {row_number}: {exc}")
        self._finish()

    def _finish(self) -> None:
        if self.on_finished is not None:
            self.on_finished(self.job)


class ProcessingTicker:
    """Calls JobRunner.tick() every ``interval_seconds`` on a daemon thread.

    cancel() revokes the runner, so a tick that was already waiting cannot
    write into a job that has been reset.
    """

    def __init__(self, runner: JobRunner, interval_seconds: float = 0.5) -> None:
        self.runner = runner
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ticker already started")
        self._thread = threading.Thread(
            target=self._loop, name=f"import-ticker-{self.runner.job.id}", daemon=True
        )
        self._thread.start()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            if not self.runner.tick():
                break

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def cancel(self) -> None:
        self._stop.set()
        self.runner.revoke()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def __enter__(self) -> ProcessingTicker:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cancel()
        self.join()
