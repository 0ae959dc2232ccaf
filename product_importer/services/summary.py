from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import pandas as pd

from ..models.column_mapping import ColumnMapping
from ..models.field_catalog import get_field
from ..models.import_job import ImportJob, parse_timestamp
from ..models.parsed_table import ParsedTable
from ..models.validation_issue import ValidationIssue
from .validation import count_errors, count_warnings

"""Text rendering for the CLI: SUMMARY line, validation report, mapping
preview, history listing, and the issue CSV export.
"""

__all__ = [
    "render_summary_line",
    "render_validation_report",
    "render_mapping_preview",
    "render_history",
    "export_issues_csv",
    "ISSUE_CSV_COLUMNS",
]

REPORT_LIMIT = 10
ISSUE_CSV_COLUMNS = ["Fila", "Columna", "Valor", "Error", "Tipo"]


def _format_progress(progress: float) -> str:
    if progress == int(progress):
        return str(int(progress))
    return f"{progress:.1f}"


def render_summary_line(job: ImportJob) -> str:
    """Render the SUMMARY line for a job.

    Format:
    SUMMARY file={name} status={status} rows={total} processed={processed}
    success={success} errors={errors} progress={progress}

    Examples:
        >>> from product_importer.models.import_job import ImportJob, JobStatus
        >>> job = ImportJob(id="x", file_name="a.csv", status=JobStatus.COMPLETED,
        ...                 progress=100.0, total_rows=4, processed_rows=4, success_rows=4)
        >>> render_summary_line(job)
        'SUMMARY file=a.csv status=completed rows=4 processed=4 success=4 errors=0 progress=100'
    """
    return (
        f"SUMMARY file={job.file_name} "
        f"status={job.status.value} "
        f"rows={job.total_rows} "
        f"processed={job.processed_rows} "
        f"success={job.success_rows} "
        f"errors={job.error_rows} "
        f"progress={_format_progress(job.progress)}"
    )


def render_validation_report(
    table: ParsedTable, issues: Sequence[ValidationIssue], limit: int = REPORT_LIMIT
) -> list[str]:
    if not issues:
        return [
            "¡Validación exitosa!",
            "Todos los datos son válidos. Puedes proceder con la importación.",
        ]
    lines = [
        f"Total filas: {table.total_rows}",
        f"Errores: {count_errors(issues)}",
        f"Advertencias: {count_warnings(issues)}",
    ]
    for issue in issues[:limit]:
        lines.append(
            f"  Fila {issue.row} | {issue.column} | {issue.value!r} | "
            f"{issue.message} | {issue.severity.label}"
        )
    if len(issues) > limit:
        lines.append(f"... y {len(issues) - limit} errores más")
    return lines


def render_mapping_preview(table: ParsedTable, mappings: Sequence[ColumnMapping]) -> list[str]:
    lines = []
    for index, mapping in enumerate(mappings):
        field = get_field(mapping.target_field)
        target = f"{field.label} ({field.key})" if field else "Sin mapear"
        marker = " [Requerido]" if mapping.required else ""
        lines.append(
            f"  {mapping.source_column} -> {target}{marker}  Ejemplo: {table.sample(index)}"
        )
    return lines


def _format_created(value: str) -> str:
    try:
        moment: datetime = parse_timestamp(value)
    except ValueError:
        return value
    # es-ES 風 (dd/mm/yyyy, HH:MM:SS)
    return moment.strftime("%d/%m/%Y, %H:%M:%S")


def render_history(jobs: Sequence[ImportJob]) -> list[str]:
    if not jobs:
        return ["(sin importaciones)"]
    return [
        f"{job.file_name}  {_format_created(job.created_at)}  [{job.status.label}]  "
        f"Total={job.total_rows} Exitosas={job.success_rows} "
        f"Errores={job.error_rows} Progreso={_format_progress(job.progress)}%"
        for job in jobs
    ]


def export_issues_csv(issues: Sequence[ValidationIssue], path: Path) -> Path:
    """Write issues as CSV (the "download errors" file)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(
        [[i.row, i.column, i.value, i.message, i.severity.label] for i in issues],
        columns=ISSUE_CSV_COLUMNS,
    )
    df.to_csv(path, index=False, encoding="utf-8")
    return path
