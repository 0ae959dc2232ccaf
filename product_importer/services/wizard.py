from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from ..config.loader import ImportConfig
from ..logging.error_log import IssueLogBuffer, IssueRecord
from ..models.column_mapping import ColumnMapping
from ..models.import_job import ImportJob, JobStatus, create_job
from ..models.parsed_table import ParsedTable
from ..models.source_file import SourceFile
from ..models.validation_issue import ValidationIssue
from ..spreadsheet.reader import FileRejectedError, TableReadError, check_source_file, read_table
from .history import ImportHistory
from .mapping import auto_map, can_validate, remap
from .processing import JobRunner, JsonLinesProductSink, ProcessingMode, ProcessingTicker, ProductSink
from .validation import count_errors, count_warnings, has_blocking_errors, validate_table

"""Import wizard: the upload → mapping → validation → processing state machine.

The wizard owns the selected file, the parsed table, the column mappings, the
validation issues and the current job. The history is shared with whoever
displays it and survives reset().

Steps only move forward through select_file(), validate() and
start_import(); go_to() moves between steps whose prerequisites exist.
"""

__all__ = [
    "WizardStep",
    "WizardStateError",
    "ImportWizard",
]

logger = logging.getLogger(__name__)

MSG_NO_REQUIRED_MAPPING = "Asigna al menos un campo requerido antes de validar"
MSG_BLOCKING_ERRORS = "Corrige los errores antes de iniciar la importación"


class WizardStep(Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    VALIDATION = "validation"
    PROCESSING = "processing"


class WizardStateError(Exception):
    """Raised when an action is not allowed in the wizard's current state."""


class ImportWizard:
    """Stateful import wizard.

    Args:
        config: Import configuration (defaults when None)
        user: Opaque current-user object, only used for log context
        history: Shared history; a fresh in-memory one when None
        sink_factory: Builds the product sink for a job
            (default: JSON Lines file in config.output_directory)
        issue_log: Buffer receiving validation issues and failures
        rng: Random source for simulated processing
    """

    def __init__(
        self,
        config: ImportConfig | None = None,
        *,
        user: Any = None,
        history: ImportHistory | None = None,
        sink_factory: Callable[[ImportJob], ProductSink] | None = None,
        issue_log: IssueLogBuffer | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or ImportConfig()
        self.user = user
        self.history = history if history is not None else ImportHistory()
        self.sink_factory = sink_factory or self._default_sink
        self.issue_log = issue_log
        if rng is None and self.config.processing.seed is not None:
            rng = random.Random(self.config.processing.seed)
        self._rng = rng
        self._lock = threading.RLock()
        self._ticker: ProcessingTicker | None = None
        self._runner: JobRunner | None = None
        self._clear()

    # -- state -----------------------------------------------------------

    def _clear(self) -> None:
        self._step = WizardStep.UPLOAD
        self._source: SourceFile | None = None
        self._table: ParsedTable | None = None
        self._mappings: list[ColumnMapping] = []
        self._issues: list[ValidationIssue] = []
        self._validated = False
        self._job: ImportJob | None = None

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def source_file(self) -> SourceFile | None:
        return self._source

    @property
    def table(self) -> ParsedTable | None:
        return self._table

    @property
    def mappings(self) -> list[ColumnMapping]:
        return list(self._mappings)

    @property
    def issues(self) -> list[ValidationIssue]:
        return list(self._issues)

    @property
    def current_job(self) -> ImportJob | None:
        return self._job

    @property
    def processing(self) -> bool:
        return self._runner is not None and not self._runner.done

    def _user_label(self) -> str:
        if self.user is None:
            return "-"
        for attr in ("email", "name", "id"):
            value = getattr(self.user, attr, None)
            if value is None and isinstance(self.user, dict):
                value = self.user.get(attr)
            if value:
                return str(value)
        return str(self.user)

    def _default_sink(self, job: ImportJob) -> ProductSink:
        return JsonLinesProductSink(Path(self.config.output_directory) / f"products-{job.id}.jsonl")

    def _stop_processing(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._runner is not None:
            self._runner.revoke()
            self._runner = None

    # -- upload → mapping -------------------------------------------------

    def select_file(self, file: SourceFile | Path | str) -> list[ColumnMapping]:
        """Check, parse and auto-map a file, then move to MAPPING.

        On any failure the wizard state is left exactly as it was.

        Raises:
            FileRejectedError: wrong type / too large
            SheetHeaderError, TableReadError: the file cannot be parsed
        """
        if isinstance(file, SourceFile):
            source = file
        else:
            path = Path(file)
            if not path.is_file():
                raise TableReadError(f"file not found: {path}")
            source = SourceFile.from_path(path)

        try:
            check_source_file(source, self.config.max_bytes)
        except FileRejectedError as e:
            logger.warning(f"file rejected name={source.name} size={source.size}: {e}")
            raise
        if source.path is None:
            raise TableReadError(f"no readable content for '{source.name}'")

        table = read_table(source.path, suffix=source.suffix)
        mappings = auto_map(table.header)

        with self._lock:
            self._stop_processing()
            self._clear()
            self._source = source
            self._table = table
            self._mappings = mappings
            self._step = WizardStep.MAPPING
        mapped = sum(1 for m in mappings if m.is_mapped)
        logger.info(
            f"file selected name={source.name} user={self._user_label()} "
            f"rows={table.total_rows} columns={len(mappings)} auto_mapped={mapped}"
        )
        return self.mappings

    # -- mapping ----------------------------------------------------------

    def set_mapping(self, column: str | int, key: str | None) -> list[ColumnMapping]:
        """Bind a source column (name or index) to a target field, None to unmap.

        Clears any previous validation result and returns to MAPPING.

        Raises:
            WizardStateError: no file yet, or a job is running
            MappingError: unknown column / field
        """
        with self._lock:
            if self._table is None:
                raise WizardStateError("select a file before mapping columns")
            if self.processing:
                raise WizardStateError("cannot change mappings while a job is processing")
            self._mappings = remap(self._mappings, column, key)
            self._issues = []
            self._validated = False
            self._step = WizardStep.MAPPING
            return self.mappings

    def can_validate(self) -> bool:
        return self._table is not None and can_validate(self._mappings)

    # -- mapping → validation ---------------------------------------------

    def validate(self) -> list[ValidationIssue]:
        """Validate the table with the current mappings and move to VALIDATION.

        Raises:
            WizardStateError: no file, or no required field is mapped
        """
        with self._lock:
            if self._table is None:
                raise WizardStateError("select a file before validating")
            if self.processing:
                raise WizardStateError("cannot validate while a job is processing")
            if not can_validate(self._mappings):
                raise WizardStateError(MSG_NO_REQUIRED_MAPPING)
            issues = validate_table(self._table, self._mappings)
            self._issues = issues
            self._validated = True
            self._step = WizardStep.VALIDATION
            file_name = self._source.name if self._source else ""

        if self.issue_log is not None and issues:
            self.issue_log.extend(file_name, issues)
        logger.info(
            f"validation file={file_name} errors={count_errors(issues)} "
            f"warnings={count_warnings(issues)}"
        )
        return list(issues)

    # -- validation → processing ------------------------------------------

    def start_import(self) -> ImportJob:
        """Create the import job and move to PROCESSING.

        The job is driven afterwards by run_to_completion() or
        start_background().

        Raises:
            WizardStateError: not validated, or error-severity issues exist
        """
        with self._lock:
            if self._table is None or not self._validated:
                raise WizardStateError("validate the data before starting the import")
            if self.processing:
                raise WizardStateError("an import is already running")
            if has_blocking_errors(self._issues):
                raise WizardStateError(MSG_BLOCKING_ERRORS)

            file_name = self._source.name if self._source else "archivo.csv"
            job = create_job(file_name, self._table.total_rows, self._issues)
            self._runner = JobRunner(
                job,
                self._table,
                self._mappings,
                self.sink_factory(job),
                mode=ProcessingMode(self.config.processing.mode),
                batch_size=self.config.processing.batch_size,
                rng=self._rng,
                on_finished=self._on_job_finished,
            )
            self._job = job
            self._step = WizardStep.PROCESSING
        logger.info(f"job {job.id} started file={file_name} rows={job.total_rows} user={self._user_label()}")
        return job

    def _on_job_finished(self, job: ImportJob) -> None:
        self.history.record(job)
        if self.issue_log is not None:
            if job.status is JobStatus.FAILED and job.errors:
                self.issue_log.append(IssueRecord.from_issue(job.file_name, job.errors[-1], job.id))
            self.issue_log.flush()

    def run_to_completion(self, on_tick: Callable[[ImportJob], None] | None = None) -> ImportJob:
        """Tick the current job synchronously until it is terminal."""
        runner = self._runner
        if runner is None:
            raise WizardStateError("no import has been started")
        return runner.run_to_completion(on_tick)

    def start_background(self, interval_seconds: float | None = None) -> ProcessingTicker:
        """Tick the current job on a background thread."""
        with self._lock:
            if self._runner is None:
                raise WizardStateError("no import has been started")
            if self._runner.done:
                raise WizardStateError("the import has already finished")
            if self._ticker is not None:
                raise WizardStateError("import already running in background")
            interval = self.config.processing.interval_seconds if interval_seconds is None else interval_seconds
            self._ticker = ProcessingTicker(self._runner, interval)
            self._ticker.start()
            return self._ticker

    def wait(self, timeout: float | None = None) -> ImportJob | None:
        """Block until the background ticker stops (or ``timeout`` passes)."""
        ticker = self._ticker
        if ticker is not None:
            ticker.join(timeout)
        return self._job

    # -- navigation / reset -----------------------------------------------

    def go_to(self, step: WizardStep) -> WizardStep:
        """Switch to ``step`` if its prerequisites exist (like the wizard tabs).

        Raises:
            WizardStateError: the step is not reachable yet
        """
        with self._lock:
            if step is WizardStep.MAPPING and self._source is None:
                raise WizardStateError("no file selected")
            if step is WizardStep.VALIDATION and not self._mappings:
                raise WizardStateError("no column mappings yet")
            if step is WizardStep.PROCESSING and self._job is None:
                raise WizardStateError("no import job yet")
            self._step = step
            return step

    def reset(self) -> None:
        """Stop any running job and clear everything except the history."""
        with self._lock:
            job = self._job
            self._stop_processing()
            self._clear()
        if job is not None and not job.status.is_terminal:
            logger.info(f"job {job.id} abandoned by reset at progress={job.progress:.1f}")
        logger.debug("wizard reset")
