from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..catalog import CatalogError, FieldCatalog, get_catalog
from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..db.batch_insert import PostgresCommitDestination
from ..db.connection import db_connection, db_disabled
from ..db.identities import load_existing_identities
from ..excel.reader import IngestionError, parse_file
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.column_mapping import IGNORE
from ..models.parsed_row import ParsedRow
from ..models.wizard_session import WizardStep
from ..services.column_mapper import MappingError, auto_map_with_conflicts, mapping_warnings
from ..services.executor import ImportSessionError
from ..services.http_commit import HttpCommitDestination
from ..services.progress import ImportProgressBar
from ..services.review import ROW_FILTERS, ReviewError
from ..services.session_store import JsonFileSessionStore
from ..services.summary import render_summary_line
from ..services.wizard import ImportWizard, WizardStateError

"""CLI entrypoint: one wizard action per invocation.

The wizard snapshot lives in the session file, so each command resumes the
previous state, applies one action and persists again:

    bulk-import upload staff.xlsx
    bulk-import status
    bulk-import map "Mobile" phone
    bulk-import next
    bulk-import edit 3 email bob@example.com
    bulk-import commit

Exit codes: 0 success, 1 fatal (config, file, illegal action, session
failure), 2 commit completed with failed rows.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

logger = logging.getLogger("bulk_import.cli")

USER_ERRORS = (
    IngestionError,
    MappingError,
    ReviewError,
    WizardStateError,
    ImportSessionError,
    CatalogError,
)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="bulk-import", description="Spreadsheet bulk import wizard")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write the CSV template for the catalog")
    t.add_argument("--catalog", help="Catalog name (defaults to the configured one)")
    t.add_argument("-o", "--output", type=Path, help="Output file (default: stdout)")

    i = sub.add_parser("inspect", help="Show headers, sample rows and proposed mapping, no session")
    i.add_argument("file", type=Path)

    u = sub.add_parser("upload", help="Start an import from a CSV/xlsx file")
    u.add_argument("file", type=Path)

    s = sub.add_parser("status", help="Show the current step and its state")
    s.add_argument("--filter", choices=ROW_FILTERS, default="all", dest="row_filter")
    s.add_argument("--limit", type=int, default=50, help="Max rows to print")

    m = sub.add_parser("map", help="Map a column to a field (or 'ignore')")
    m.add_argument("header")
    m.add_argument("field")
    m.add_argument("--swap", action="store_true", help="Give the previous holder this column's field")

    sub.add_parser("remap", help="Re-run automatic mapping, keeping manual choices")
    sub.add_parser("next", help="Confirm the mapping and validate rows")
    sub.add_parser("back", help="Go back one step")

    e = sub.add_parser("edit", help="Edit one cell")
    e.add_argument("row", type=int)
    e.add_argument("field")
    e.add_argument("value")

    tg = sub.add_parser("toggle", help="Include/exclude one row")
    tg.add_argument("row", type=int)

    sel = sub.add_parser("select", help="Include all valid rows, or none")
    sel.add_argument("which", choices=("all", "none"))

    f = sub.add_parser("fill", help="Set one field to the same value on every row")
    f.add_argument("field")
    f.add_argument("value")

    sub.add_parser("commit", help="Import the included rows")
    sub.add_parser("reset", help="Discard the current import")
    return p.parse_args(argv)


# -- wiring -------------------------------------------------------------------


def _identity_loader(cfg: ImportConfig):
    def load() -> list[str]:
        if cfg.identities is None:
            logger.debug("no identity source configured; existing-record check skipped")
            return []
        if db_disabled():
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> empty identity snapshot")
            return []
        try:
            with db_connection(cfg.database) as cur:
                return load_existing_identities(
                    cur,
                    cfg.identities.table,
                    cfg.identities.column,
                    tenant_column=cfg.identities.tenant_column,
                    tenant_id=cfg.tenant_id,
                )
        except psycopg2.Error as e:
            logger.warning(f"identity snapshot unavailable, existing-record check skipped: {e}")
            return []

    return load


class _PostgresDestination:
    """Opens a connection for the one commit call and commits the transaction on success."""

    def __init__(self, cfg: ImportConfig, identity_column: str) -> None:
        self.cfg = cfg
        self.identity_column = identity_column

    def submit(self, request: dict[str, Any]) -> dict[str, Any]:
        assert self.cfg.commit.table is not None
        with db_connection(self.cfg.database) as cur:
            destination = PostgresCommitDestination(
                cur,
                self.cfg.commit.table,
                identity_column=self.identity_column,
                tenant_column=self.cfg.commit.tenant_column,
            )
            return destination.submit(request)


def _destination_factory(cfg: ImportConfig, catalog: FieldCatalog):
    def build():
        if cfg.commit.mode == "postgres":
            if db_disabled():
                raise ImportSessionError("database access is disabled (DISABLE_DB_CONNECT=1)")
            return _PostgresDestination(cfg, catalog.identity_field)
        if not cfg.commit.url:
            raise ImportSessionError("no commit URL configured (commit.url or BULK_IMPORT_COMMIT_URL)")
        return HttpCommitDestination(
            cfg.commit.url, timeout=cfg.commit.timeout_seconds, token=cfg.commit.token
        )

    return build


# -- rendering ----------------------------------------------------------------


def _print_mappings(wizard: ImportWizard) -> None:
    catalog = wizard.catalog
    for m in wizard.mappings:
        target = "(ignored)" if m.field_key == IGNORE else catalog.get(m.field_key).label
        print(f"  {m.raw_header!r:<30} -> {target} [{m.confidence.value}]")
    for w in wizard.warnings:
        print(f"  WARNING: {w.message}")


def _format_row(row: ParsedRow) -> str:
    mark = "x" if row.included else " "
    cells = ", ".join(f"{k}={v}" for k, v in row.values.items() if v)
    line = f"  [{mark}] #{row.source_row_index}: {cells}"
    if row.field_errors:
        line += " | errors: " + "; ".join(f"{k}: {v}" for k, v in row.field_errors.items())
    if row.warnings:
        line += " | " + "; ".join(row.warnings)
    return line


def _print_status(wizard: ImportWizard, row_filter: str = "all", limit: int = 50) -> None:
    print(f"step: {wizard.step.value}")
    if wizard.file_name:
        print(f"file: {wizard.file_name} ({wizard.file_size} bytes)")
    if wizard.last_error:
        print(f"last error: {wizard.last_error} (run 'commit' again to retry)")
    if wizard.step is WizardStep.UPLOAD:
        print("no file uploaded; run 'upload <file>'")
    elif wizard.step is WizardStep.MAPPING:
        assert wizard.raw_table is not None
        print(f"rows: {wizard.raw_table.row_count}")
        _print_mappings(wizard)
    elif wizard.step is WizardStep.VALIDATION:
        assert wizard.review is not None
        c = wizard.counts()
        print(
            f"rows: total={c.total} valid={c.valid} errors={c.error} "
            f"duplicates={c.duplicate} included={c.included}"
        )
        rows = wizard.review.filter_rows(row_filter)
        for row in rows[:limit]:
            print(_format_row(row))
        if len(rows) > limit:
            print(f"  ... {len(rows) - limit} more")


def _inspect(path: Path, cfg: ImportConfig, catalog: FieldCatalog) -> int:
    table = parse_file(
        path.read_bytes(),
        path.suffix,
        max_rows=cfg.max_rows,
        max_bytes=cfg.max_file_bytes,
        header_strategy=cfg.header_strategy,
    )
    print(f"FILE: {path.name} rows={table.row_count}")
    print(f"  headers={list(table.headers)}")
    print("  sample_rows=", list(table.sample(3)))
    result = auto_map_with_conflicts(
        table.headers,
        catalog,
        table.sample(cfg.sample_size),
        sample_size=cfg.sample_size,
        threshold=cfg.inference_threshold,
    )
    for m in result.mappings:
        print(f"  {m.raw_header!r} -> {m.field_key} [{m.confidence.value}]")
    for w in mapping_warnings(result.mappings, catalog, result.conflicts):
        print(f"  WARNING: {w.message}")
    return EXIT_SUCCESS


def _commit(wizard: ImportWizard, error_log: ErrorLogBuffer) -> int:
    submitted = wizard.counts().included
    file_name = wizard.file_name or ""
    start = time.monotonic()
    try:
        with ImportProgressBar() as bar:
            result = wizard.start_import(progress=bar)
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error details written to {log_path}")
    elapsed = time.monotonic() - start

    for err in result.errors:
        where = f"row {err.row_index}" if err.row_index >= 0 else "unknown row"
        logger.error(f"{where}: {err.message}")
    summary_line = render_summary_line(file_name, submitted, result, elapsed)
    # the SUMMARY label comes from the formatter
    log_summary(summary_line.removeprefix("SUMMARY "))
    return EXIT_PARTIAL_FAILURE if result.has_failures else EXIT_SUCCESS


def _dispatch(args: argparse.Namespace, cfg: ImportConfig, catalog: FieldCatalog) -> int:
    if args.command == "inspect":
        return _inspect(args.file, cfg, catalog)

    error_log = ErrorLogBuffer()
    wizard = ImportWizard.resume(
        catalog,
        JsonFileSessionStore(cfg.session_path),
        identity_loader=_identity_loader(cfg),
        destination_factory=_destination_factory(cfg, catalog),
        settings=cfg.wizard_settings(),
        error_log=error_log,
    )
    cmd = args.command
    if cmd == "upload":
        if wizard.step is not WizardStep.UPLOAD:
            raise WizardStateError(
                f"an import of '{wizard.file_name}' is in progress; run 'reset' first"
            )
        wizard.upload(args.file.read_bytes(), args.file.name)
    elif cmd == "map":
        wizard.assign(args.header, args.field, swap=args.swap)
    elif cmd == "remap":
        wizard.remap()
    elif cmd == "next":
        wizard.confirm_mapping()
    elif cmd == "back":
        wizard.back()
    elif cmd == "edit":
        row = wizard.edit_cell(args.row, args.field, args.value)
        print(_format_row(row))
        return EXIT_SUCCESS
    elif cmd == "toggle":
        row = wizard.toggle_included(args.row)
        print(_format_row(row))
        return EXIT_SUCCESS
    elif cmd == "select":
        wizard.set_all_included(args.which == "all")
    elif cmd == "fill":
        wizard.fill_column(args.field, args.value)
    elif cmd == "commit":
        return _commit(wizard, error_log)
    elif cmd == "reset":
        wizard.reset()
        logger.info("import discarded")
        return EXIT_SUCCESS
    _print_status(
        wizard,
        row_filter=getattr(args, "row_filter", "all"),
        limit=getattr(args, "limit", 50),
    )
    return EXIT_SUCCESS


def _template(args: argparse.Namespace, catalog: FieldCatalog) -> int:
    text = catalog.generate_template()
    if args.output is None:
        sys.stdout.write(text)
    else:
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"template written to {args.output}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] must not pick up the test runner's argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)

    if args.command == "template" and args.catalog:
        try:
            return _template(args, get_catalog(args.catalog))
        except CatalogError as e:
            logger.error(f"catalog: {e}")
            return EXIT_FATAL

    try:
        cfg = load_config(args.config)
        catalog = get_catalog(cfg.catalog)
    except (ConfigError, CatalogError) as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "template":
        return _template(args, catalog)

    try:
        return _dispatch(args, cfg, catalog)
    except USER_ERRORS as e:
        logger.error(str(e))
        return EXIT_FATAL
    except OSError as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
