from __future__ import annotations

import json
import logging
import threading
from io import StringIO
from pathlib import Path

from product_importer.logging.error_log import IssueLogBuffer, IssueRecord
from product_importer.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    set_debug,
    setup_logging,
)
from product_importer.models.validation_issue import Severity, ValidationIssue


def _capture(logger: logging.Logger) -> StringIO:
    buf = StringIO()
    handler = logger.handlers[0]
    handler.setStream(buf)
    return buf


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert first.name == LOGGER_NAME
    assert len(first.handlers) == 1
    assert first.propagate is False
    assert get_logger() is first


def test_labeled_prefixes():
    logger = setup_logging()
    buf = _capture(logger)
    logger.info("hola")
    logger.warning("cuidado")
    logger.error("fallo")
    log_summary("file=a.csv status=completed")
    assert buf.getvalue().splitlines() == [
        "INFO hola",
        "WARN cuidado",
        "ERROR fallo",
        "SUMMARY file=a.csv status=completed",
    ]
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"


def test_child_loggers_use_package_handler():
    logger = setup_logging()
    buf = _capture(logger)
    logging.getLogger(f"{LOGGER_NAME}.services.wizard").info("desde el asistente")
    assert buf.getvalue() == "INFO desde el asistente\n"


def test_debug_toggle():
    logger = setup_logging()
    buf = _capture(logger)
    logger.debug("oculto")
    set_debug(True)
    logger.debug("visible")
    set_debug(False)
    assert buf.getvalue() == "DEBUG visible\n"
    assert logger.level == logging.INFO


def test_formatter_unknown_level_uses_level_name():
    record = logging.LogRecord("x", 15, __file__, 1, "msg", None, None)
    logging.addLevelName(15, "TRACE")
    assert LabeledFormatter().format(record) == "TRACE msg"


def test_issue_log_flush_writes_json_lines(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()

    buf.extend("productos.csv", [
        ValidationIssue(5, "Precio", "precio_invalido", "Debe ser un número válido mayor o igual a 0", Severity.ERROR),
        ValidationIssue(3, "Imagen", "foo", "Debe ser una URL válida", Severity.WARNING),
    ])
    buf.append(IssueRecord.file_level("productos.csv", "boom", job_id="abc"))
    assert len(buf) == 3

    path = buf.flush()
    assert path is not None and path.parent == tmp_path / "logs"
    assert path.name.startswith("issues-") and path.suffix == ".log"
    assert len(buf) == 0

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["row"] for r in records] == [5, 3, -1]
    assert records[0]["severity"] == "error"
    assert records[1]["severity"] == "warning"
    assert records[2]["job_id"] == "abc"
    assert records[0]["timestamp"].endswith("Z")


def test_issue_log_appends_to_same_file(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path)
    buf.append(IssueRecord.file_level("a.csv", "uno"))
    first = buf.flush()
    buf.append(IssueRecord.file_level("a.csv", "dos"))
    second = buf.flush()
    assert first == second
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_issue_log_flush_keeps_records_added_from_other_threads(tmp_path: Path):
    buf = IssueLogBuffer(tmp_path)
    issue = ValidationIssue(2, "SKU", "", "Campo requerido", Severity.ERROR)

    def producer():
        for _ in range(500):
            buf.extend("a.csv", [issue])

    workers = [threading.Thread(target=producer) for _ in range(4)]
    for w in workers:
        w.start()
    while any(w.is_alive() for w in workers):
        buf.flush()
    for w in workers:
        w.join()
    path = buf.flush() or buf.file_path
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2000
