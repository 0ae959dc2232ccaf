from __future__ import annotations

from pathlib import Path

import pandas as pd

from product_importer.models.import_job import ImportJob, JobStatus
from product_importer.models.parsed_table import ParsedTable
from product_importer.models.validation_issue import Severity, ValidationIssue
from product_importer.services.history import seed_jobs
from product_importer.services.mapping import auto_map
from product_importer.services.summary import (
    ISSUE_CSV_COLUMNS,
    export_issues_csv,
    render_history,
    render_mapping_preview,
    render_summary_line,
    render_validation_report,
)


def _issues(n: int) -> list[ValidationIssue]:
    return [ValidationIssue(i + 2, "SKU", "", "Campo requerido", Severity.ERROR) for i in range(n)]


def test_summary_line_format():
    job = ImportJob(
        id="x", file_name="productos.csv", status=JobStatus.FAILED, progress=33.3333,
        total_rows=6, processed_rows=4, success_rows=3, error_rows=1,
    )
    assert render_summary_line(job) == (
        "SUMMARY file=productos.csv status=failed rows=6 processed=4 "
        "success=3 errors=1 progress=33.3"
    )


def test_validation_report_success():
    table = ParsedTable.from_rows([["Nombre"], ["Mesa"]])
    assert render_validation_report(table, []) == [
        "¡Validación exitosa!",
        "Todos los datos son válidos. Puedes proceder con la importación.",
    ]


def test_validation_report_truncates_after_ten():
    table = ParsedTable.from_rows([["SKU"]] + [[""]] * 12)
    issues = _issues(12) + [ValidationIssue(3, "Imagen", "x", "Debe ser una URL válida", Severity.WARNING)]
    lines = render_validation_report(table, issues)
    assert lines[:3] == ["Total filas: 12", "Errores: 12", "Advertencias: 1"]
    assert len(lines) == 3 + 10 + 1
    assert lines[3] == "  Fila 2 | SKU | '' | Campo requerido | Error"
    assert lines[-1] == "... y 3 errores más"


def test_validation_report_exactly_ten_has_no_tail():
    table = ParsedTable.from_rows([["SKU"]] + [[""]] * 10)
    lines = render_validation_report(table, _issues(10))
    assert not lines[-1].startswith("...")


def test_mapping_preview(demo_rows):
    rows = [r + ["Color"] if i == 0 else r + [""] for i, r in enumerate(demo_rows)]
    table = ParsedTable.from_rows(rows)
    lines = render_mapping_preview(table, auto_map(table.header))
    assert lines[0] == "  Nombre -> Nombre del producto (name) [Requerido]  Ejemplo: Smartphone Galaxy"
    assert lines[4] == "  Categoría -> Categoría (category)  Ejemplo: Electrónicos"
    assert lines[-1] == "  Color -> Sin mapear  Ejemplo: Sin datos"


def test_render_history():
    lines = render_history(seed_jobs())
    assert lines[0].startswith("productos_enero_2024.csv  15/01/2024, 10:30:00  [Completado]")
    assert "Exitosas=1198 Errores=52 Progreso=100%" in lines[0]
    assert "[Procesando]" in lines[1] and "Progreso=65%" in lines[1]
    assert "[Fallido]" in lines[2]


def test_render_empty_history():
    assert render_history([]) == ["(sin importaciones)"]


def test_export_issues_csv(tmp_path: Path):
    issues = [
        ValidationIssue(5, "Precio", "precio_invalido", "Debe ser un número válido mayor o igual a 0", Severity.ERROR),
        ValidationIssue(3, "Imagen", "foo", "Debe ser una URL válida", Severity.WARNING),
    ]
    path = export_issues_csv(issues, tmp_path / "out" / "errores.csv")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    assert list(df.columns) == ISSUE_CSV_COLUMNS
    assert df.to_dict("records") == [
        {"Fila": "5", "Columna": "Precio", "Valor": "precio_invalido",
         "Error": "Debe ser un número válido mayor o igual a 0", "Tipo": "Error"},
        {"Fila": "3", "Columna": "Imagen", "Valor": "foo",
         "Error": "Debe ser una URL válida", "Tipo": "Advertencia"},
    ]
