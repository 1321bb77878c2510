from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from ..config.loader import ImportConfig, default_config
from ..db.store import RecordStore
from ..logging.error_log import ImportErrorLog
from ..mapping.classifier import classify
from ..mapping.normalize import normalize_header
from ..models.import_result import ImportResult
from ..models.student import StudentRecord
from ..tabular.reader import ContentError, TabularData, read
from .ingest import ingest

"""Import orchestration: file bytes + group name -> records in the store.

import_batch() is the entry point used by the CLI (and by any HTTP layer):
1. Validate the group name and parse the file; both fail with ContentError
   before anything is written
2. Ingest all rows into a new group
3. Flush the error log once (rejected rows, or the file-level failure)
4. Return an ImportResult (created count plus the full per-row report)
"""

__all__ = [
    "ColumnMapping",
    "describe_columns",
    "import_batch",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnMapping:
    header: str  # as authored
    normalized: str
    field: str | None  # None: column is dropped on import


def describe_columns(table: TabularData) -> list[ColumnMapping]:
    """Show which canonical field each header would classify to (for previews).

    Uses a placeholder value, so empty-cell short-circuiting is not reflected.
    """
    mappings = []
    for header in table.columns:
        key = normalize_header(header)
        mappings.append(ColumnMapping(header=header, normalized=key, field=classify(key, "x")))
    return mappings


def _flush_error_log(error_log: ImportErrorLog) -> None:
    # Log write failures only warn
    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning("could not write error log: %s", e)
        return
    if log_path is not None:
        logger.info("import errors written to %s", log_path)


def import_batch(
    file_bytes: bytes,
    declared_extension: str | None,
    group_name: str,
    store: RecordStore,
    *,
    config: ImportConfig | None = None,
    file_name: str | None = None,
) -> ImportResult:
    """Import one uploaded file into a new group.

    Args:
        file_bytes: raw upload
        declared_extension: extension used to pick the reader ('csv', 'xlsx', 'json', ...)
        group_name: name of the group created for this import (required)
        store: record store receiving the rows
        config: import settings (defaults when None)
        file_name: used in log lines and the error log only

    Raises:
        ContentError: empty group name or unparseable file; no record is written.
    """
    cfg = config or default_config()
    source = file_name or f"<upload>.{(declared_extension or '').lstrip('.')}"
    start_time = datetime.now(UTC)

    if not group_name or not group_name.strip():
        raise ContentError("group name is required")

    error_log = ImportErrorLog(cfg.error_log_dir, file=source, group=group_name)
    try:
        table = read(
            file_bytes,
            declared_extension,
            delimiter=cfg.csv_delimiter,
            na_strings=cfg.na_strings,
        )
    except ContentError as e:
        error_log.file_failed(str(e))
        _flush_error_log(error_log)
        raise
    logger.info("file=%s format=%s columns=%d rows=%d", source, table.source_format, len(table.columns), len(table.rows))

    def _record_failure(row_number: int, candidate: StudentRecord, message: str) -> None:
        error_log.row_failed(row_number, f"national_id={candidate.national_id}: {message}")

    report = ingest(
        table.rows,
        group_name,
        store,
        placeholder_name=cfg.placeholder_name,
        temp_id_prefix=cfg.temp_national_id_prefix,
        on_failure=_record_failure,
    )

    _flush_error_log(error_log)

    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    throughput = report.created_count / elapsed if elapsed > 0 else 0.0

    return ImportResult(
        created_count=report.created_count,
        total_rows=report.total_rows,
        skipped_rows=report.skipped_count,
        failed_rows=report.failed_count,
        group_id=report.group.id if report.group is not None else None,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=throughput,
        report=report,
    )
