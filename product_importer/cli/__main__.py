from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from product_importer.config.loader import ConfigError, ImportConfig, load_config
from product_importer.logging.error_log import IssueLogBuffer, IssueRecord
from product_importer.logging.init import log_summary, set_debug, setup_logging
from product_importer.models.column_mapping import MappingError
from product_importer.models.field_catalog import PRODUCT_FIELDS
from product_importer.models.import_job import JobStatus
from product_importer.services.history import HistoryError, ImportHistory, seed_jobs
from product_importer.services.processing import NullSink
from product_importer.services.progress import JobProgressBar
from product_importer.services.summary import (
    export_issues_csv,
    render_history,
    render_mapping_preview,
    render_summary_line,
    render_validation_report,
)
from product_importer.services.template import write_template
from product_importer.services.validation import count_errors, has_blocking_errors
from product_importer.services.wizard import MSG_NO_REQUIRED_MAPPING, ImportWizard
from product_importer.spreadsheet.reader import FileRejectedError, SheetHeaderError, TableReadError

"""CLI entrypoint.

Runs the import wizard non-interactively:
- import: select file -> auto-map (+ --map overrides) -> validate -> process
- inspect: header, auto-mapping preview and first rows, then exit
- template: write the CSV template
- history: list past import jobs
- fields: list the target field catalog

Exit codes: 0 success, 1 fatal (config / file rejected / unreadable),
2 blocked by validation errors or the job failed.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_BLOCKED = 2

USER_ENV_VAR = "PRODUCT_IMPORTER_USER"


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv (process env wins unless override=True)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="product-importer", description="CSV/XLSX product importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Path to import.yml")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import products from a CSV/XLSX file")
    imp.add_argument("file", type=Path)
    imp.add_argument(
        "--map", dest="overrides", action="append", default=[], metavar="COLUMN=FIELD",
        help="Override the auto-mapping for one column (empty FIELD unmaps it)",
    )
    imp.add_argument("--dry-run", action="store_true", help="Validate and process without writing products")
    imp.add_argument("--errors-csv", type=Path, default=None, help="Write validation issues to this CSV")

    insp = sub.add_parser("inspect", help="Show header, auto-mapping and first rows")
    insp.add_argument("file", type=Path)
    insp.add_argument("--rows", type=int, default=3)

    tpl = sub.add_parser("template", help="Write the CSV template")
    tpl.add_argument("directory", type=Path, nargs="?", default=Path("."))

    hist = sub.add_parser("history", help="List past imports")
    hist.add_argument("--limit", type=int, default=20)

    sub.add_parser("fields", help="List importable fields")
    return p.parse_args(argv)


def _parse_override(raw: str) -> tuple[str, str | None]:
    if "=" not in raw:
        raise MappingError(f"invalid --map value {raw!r} (expected COLUMN=FIELD)")
    column, _, key = raw.partition("=")
    return column.strip(), key.strip() or None


def _build_history(cfg: ImportConfig) -> ImportHistory:
    seed = seed_jobs() if cfg.history.seed_demo else None
    path = Path(cfg.history.path) if cfg.history.path else None
    return ImportHistory(seed, path=path)


def _select(wizard: ImportWizard, path: Path, logger, issue_log: IssueLogBuffer | None = None) -> bool:
    try:
        wizard.select_file(path)
    except FileRejectedError as e:
        logger.error(f"file rejected: {e}")
        _log_file_issue(issue_log, path, e)
        return False
    except (SheetHeaderError, TableReadError) as e:
        logger.error(f"read: {e}")
        _log_file_issue(issue_log, path, e)
        return False
    return True


def _log_file_issue(issue_log: IssueLogBuffer | None, path: Path, exc: Exception) -> None:
    if issue_log is None:
        return
    issue_log.append(IssueRecord.file_level(path.name, str(exc)))
    issue_log.flush()


def _run_import(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    issue_log = IssueLogBuffer(Path(cfg.logs_directory))
    wizard = ImportWizard(
        cfg,
        user=os.getenv(USER_ENV_VAR),
        history=_build_history(cfg),
        sink_factory=(lambda job: NullSink()) if args.dry_run else None,
        issue_log=issue_log,
    )
    if not _select(wizard, args.file, logger, issue_log):
        return EXIT_FATAL

    try:
        for raw in args.overrides:
            column, key = _parse_override(raw)
            wizard.set_mapping(column, key)
    except MappingError as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL

    table = wizard.table
    for line in render_mapping_preview(table, wizard.mappings):
        logger.info(line)

    if not wizard.can_validate():
        logger.error(MSG_NO_REQUIRED_MAPPING)
        return EXIT_BLOCKED

    issues = wizard.validate()
    for line in render_validation_report(table, issues):
        if count_errors(issues):
            logger.warning(line)
        else:
            logger.info(line)
    if args.errors_csv is not None and issues:
        written = export_issues_csv(issues, args.errors_csv)
        logger.info(f"issues written to {written}")

    if has_blocking_errors(issues):
        log_path = issue_log.flush()
        if log_path is not None:
            logger.info(f"issue log: {log_path}")
        logger.error(f"import blocked: {count_errors(issues)} errors")
        return EXIT_BLOCKED

    wizard.start_import()
    with JobProgressBar(wizard.source_file.name) as bar:
        job = wizard.run_to_completion(on_tick=bar.update)

    if job.status is JobStatus.COMPLETED:
        logger.info(f"Importación completada exitosamente. {job.success_rows} productos importados.")
    summary_line = render_summary_line(job)
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS if job.status is JobStatus.COMPLETED else EXIT_BLOCKED


def _inspect(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    wizard = ImportWizard(cfg)
    if not _select(wizard, args.file, logger):
        return EXIT_FATAL
    table = wizard.table
    print(f"FILE: {args.file.name} rows={table.total_rows}")
    print(f"  columns={list(table.header)}")
    for line in render_mapping_preview(table, wizard.mappings):
        print(line)
    for row in table.data_rows[: max(args.rows, 0)]:
        print(f"  row={list(row)}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストで [] を渡すケース)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        return _dispatch(args, cfg, logger)
    except HistoryError as e:
        logger.error(f"history: {e}")
        return EXIT_FATAL


def _dispatch(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    if args.command == "import":
        return _run_import(args, cfg, logger)
    if args.command == "inspect":
        return _inspect(args, cfg, logger)
    if args.command == "template":
        path = write_template(args.directory, cfg.template_filename)
        logger.info(f"template written: {path}")
        return EXIT_SUCCESS
    if args.command == "history":
        for line in render_history(_build_history(cfg).jobs()[: args.limit]):
            print(line)
        return EXIT_SUCCESS
    if args.command == "fields":
        for f in PRODUCT_FIELDS:
            marker = " *" if f.required else ""
            print(f"{f.key:16} {f.data_type.value:8} {f.label}{marker}")
        return EXIT_SUCCESS
    return EXIT_FATAL  # pragma: no cover - argparse enforces the choices


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
