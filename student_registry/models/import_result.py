from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .student import Group, StudentRecord

"""Result models for the import pipeline.

RowOutcome is the per-row result (created / skipped / failed) collected into an
IngestReport. ImportResult is what the outer import call hands back to callers.
"""

__all__ = [
    "ImportResult",
    "IngestReport",
    "RowOutcome",
    "RowStatus",
    "SkipReason",
]


class RowStatus(Enum):
    """Outcome of a single input row.

    - CREATED: record written to the store
    - SKIPPED: no identity field could be resolved; nothing written
    - FAILED: the store rejected the write
    """
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


class SkipReason(Enum):
    MISSING_IDENTITY = "missing_identity"  # neither name nor nationalId


@dataclass(frozen=True)
class RowOutcome:
    row_number: int  # 1-based data row number (header excluded)
    status: RowStatus
    record: StudentRecord | None = None
    skip_reason: SkipReason | None = None
    error: str | None = None
    unclassified_headers: tuple[str, ...] = ()


@dataclass
class IngestReport:
    """Per-row outcomes of one ingestion run, in file order."""
    group: Group | None
    outcomes: list[RowOutcome] = field(default_factory=list)

    @property
    def created(self) -> list[StudentRecord]:
        return [o.record for o in self.outcomes if o.status is RowStatus.CREATED and o.record is not None]

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is RowStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is RowStatus.FAILED)

    @property
    def total_rows(self) -> int:
        return len(self.outcomes)


@dataclass(frozen=True)
class ImportResult:
    """Summary of one import call (created_count is the caller-visible contract)."""
    created_count: int
    total_rows: int
    skipped_rows: int
    failed_rows: int
    group_id: int | None
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # created / elapsed
    report: IngestReport | None = None
