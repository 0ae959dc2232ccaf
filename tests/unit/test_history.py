from __future__ import annotations

import json
from pathlib import Path

import pytest

from product_importer.models.import_job import ImportJob, JobStatus, create_job
from product_importer.models.validation_issue import Severity, ValidationIssue
from product_importer.services.history import SEED_HISTORY, HistoryError, ImportHistory, seed_jobs


def _finished(name: str, status: JobStatus = JobStatus.COMPLETED) -> ImportJob:
    job = create_job(name, 3, [])
    job.status = status
    job.progress = 100.0 if status is JobStatus.COMPLETED else 40.0
    job.processed_rows = 3
    job.success_rows = 3
    job.completed_at = "2024-02-01T12:00:00Z"
    return job


def test_seed_history_matches_demo_jobs():
    jobs = seed_jobs()
    assert [j.id for j in jobs] == ["1", "2", "3"]
    assert [j.status for j in jobs] == [JobStatus.COMPLETED, JobStatus.PROCESSING, JobStatus.FAILED]
    assert jobs[0].success_rows + jobs[0].error_rows == jobs[0].processed_rows
    assert jobs[1].progress == 65.0
    assert len(jobs[2].errors) == 2
    assert len(SEED_HISTORY) == 3


def test_record_prepends_newest_first():
    history = ImportHistory()
    history.record(_finished("a.csv"))
    history.record(_finished("b.csv", JobStatus.FAILED))
    assert [j.file_name for j in history.jobs()] == ["b.csv", "a.csv"]
    assert history.latest().file_name == "b.csv"
    assert len(history) == 2


def test_record_rejects_running_job():
    history = ImportHistory()
    with pytest.raises(HistoryError):
        history.record(create_job("a.csv", 1, []))
    assert len(history) == 0
    assert history.latest() is None


def test_entries_are_snapshots():
    history = ImportHistory()
    job = _finished("a.csv")
    history.record(job)
    job.success_rows = 0
    job.errors.append(ValidationIssue(2, "SKU", "", "Campo requerido", Severity.ERROR))

    stored = history.jobs()[0]
    assert stored.success_rows == 3
    assert stored.errors == []

    # returned copies do not write back either
    stored.file_name = "changed.csv"
    assert history.jobs()[0].file_name == "a.csv"


def test_seeded_history_keeps_order():
    history = ImportHistory(seed_jobs())
    history.record(_finished("nuevo.csv"))
    assert [j.id for j in history.jobs()][1:] == ["1", "2", "3"]


def test_persisted_history_reloads(tmp_path: Path):
    path = tmp_path / "out" / "history.jsonl"
    first = ImportHistory(path=path)
    first.record(_finished("a.csv"))
    first.record(_finished("b.csv"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(x)["file_name"] for x in lines] == ["a.csv", "b.csv"]

    reloaded = ImportHistory(path=path)
    assert [j.file_name for j in reloaded.jobs()] == ["b.csv", "a.csv"]
    assert reloaded.jobs()[0].status is JobStatus.COMPLETED


def test_broken_history_file_raises(tmp_path: Path):
    path = tmp_path / "history.jsonl"
    path.write_text("{not json}\n", encoding="utf-8")
    with pytest.raises(HistoryError):
        ImportHistory(path=path)
