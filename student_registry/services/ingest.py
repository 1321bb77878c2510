from __future__ import annotations

import itertools
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import UTC, datetime

from ..config.loader import DEFAULT_PLACEHOLDER_NAME, DEFAULT_TEMP_ID_PREFIX
from ..db.store import RecordStore, StoreError
from ..mapping.classifier import classify_row
from ..mapping.reconcile import reconcile
from ..models.import_result import IngestReport, RowOutcome, RowStatus, SkipReason
from ..models.student import StudentRecord
from ..tabular.reader import ContentError, RawRow
from .progress import ProgressTracker

"""Bulk ingestion: raw rows -> classified, reconciled student records -> store.

Rows are processed sequentially in file order and written one at a time. A row
the store rejects is logged and reported as FAILED; the batch carries on, so an
import may persist only part of its rows. Nothing is rolled back.

Re-importing the same file creates the records again; only rows whose
national_id collides with a stored one are rejected (by the store).
"""

__all__ = [
    "FailureCallback",
    "TempNationalIdGenerator",
    "bulk_create_or_skip",
    "ingest",
    "reconcile_row",
]

logger = logging.getLogger(__name__)

# (row_number, candidate record, error message)
FailureCallback = Callable[[int, StudentRecord, str], None]


class TempNationalIdGenerator:
    """Placeholder national IDs: ``<prefix>-<epoch ms>.<run token>-<n>``.

    The random run token keeps generators created in the same millisecond apart.
    """

    def __init__(self, prefix: str = DEFAULT_TEMP_ID_PREFIX, *, stamp: int | str | None = None) -> None:
        self.prefix = prefix
        if stamp is None:
            stamp = f"{int(time.time() * 1000)}.{uuid.uuid4().hex[:6]}"
        self.stamp = stamp
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{self.stamp}-{next(self._counter)}"


def reconcile_row(row: RawRow) -> tuple[dict[str, str], tuple[str, ...]]:
    """Classify and reconcile one raw row.

    Returns the sparse canonical field mapping and the raw headers that carried a
    value but matched no rule (those values are not stored).
    """
    classified = classify_row(row)
    return reconcile(classified.fields), classified.unclassified_headers


def bulk_create_or_skip(
    store: RecordStore,
    records: Sequence[dict[str, str]],
    *,
    group_id: int | None = None,
    placeholder_name: str = DEFAULT_PLACEHOLDER_NAME,
    id_generator: Callable[[], str] | None = None,
    on_failure: FailureCallback | None = None,
    progress: ProgressTracker | None = None,
) -> list[RowOutcome]:
    """Write partial records one by one, skipping and defaulting as needed.

    - no name and no nationalId: SKIPPED, nothing written
    - no name: placeholder_name
    - no nationalId: value from id_generator
    - StoreError: FAILED, reported through on_failure, next record continues
    """
    generate_id = id_generator or TempNationalIdGenerator()
    outcomes: list[RowOutcome] = []

    for row_number, fields in enumerate(records, start=1):
        values = {k: v for k, v in fields.items() if v is not None and v != ""}

        if not values.get("name") and not values.get("nationalId"):
            logger.debug("row %d skipped: neither name nor nationalId resolved", row_number)
            outcome = RowOutcome(
                row_number=row_number,
                status=RowStatus.SKIPPED,
                skip_reason=SkipReason.MISSING_IDENTITY,
            )
            outcomes.append(outcome)
            if progress is not None:
                progress.advance(outcome.status)
            continue

        if not values.get("name"):
            values["name"] = placeholder_name
        if not values.get("nationalId"):
            values["nationalId"] = generate_id()

        candidate = StudentRecord.from_fields(values, group_id=group_id)
        try:
            created = store.create_student(candidate)
        except StoreError as e:
            logger.warning("row %d rejected by store: %s", row_number, e)
            if on_failure is not None:
                on_failure(row_number, candidate, str(e))
            outcome = RowOutcome(row_number=row_number, status=RowStatus.FAILED, record=candidate, error=str(e))
        else:
            outcome = RowOutcome(row_number=row_number, status=RowStatus.CREATED, record=created)
        outcomes.append(outcome)
        if progress is not None:
            progress.advance(outcome.status)

    return outcomes


def ingest(
    rows: Sequence[RawRow],
    group_name: str,
    store: RecordStore,
    *,
    placeholder_name: str = DEFAULT_PLACEHOLDER_NAME,
    temp_id_prefix: str = DEFAULT_TEMP_ID_PREFIX,
    on_failure: FailureCallback | None = None,
) -> IngestReport:
    """Create a group for ``group_name`` and import every row into it.

    Raises:
        ContentError: when group_name is empty (before anything is written).
        StoreError: when the group itself cannot be created.
    """
    if not group_name or not group_name.strip():
        raise ContentError("group name is required")

    group = store.create_group(group_name.strip(), datetime.now(UTC).isoformat().replace("+00:00", "Z"))
    logger.info("group id=%s name=%s rows=%d", group.id, group.name, len(rows))

    candidates: list[dict[str, str]] = []
    unclassified: list[tuple[str, ...]] = []
    for row_number, row in enumerate(rows, start=1):
        fields, dropped = reconcile_row(row)
        if dropped:
            logger.debug("row %d unclassified headers=%s", row_number, list(dropped))
        candidates.append(fields)
        unclassified.append(dropped)

    with ProgressTracker(len(rows)) as progress:
        outcomes = bulk_create_or_skip(
            store,
            candidates,
            group_id=group.id,
            placeholder_name=placeholder_name,
            id_generator=TempNationalIdGenerator(temp_id_prefix),
            on_failure=on_failure,
            progress=progress,
        )

    report = IngestReport(
        group=group,
        outcomes=[replace(o, unclassified_headers=d) for o, d in zip(outcomes, unclassified, strict=True)],
    )
    logger.info(
        "group id=%s created=%d skipped=%d failed=%d",
        group.id,
        report.created_count,
        report.skipped_count,
        report.failed_count,
    )
    return report
