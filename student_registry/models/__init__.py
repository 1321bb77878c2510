"""Domain models for the student registry.

This package contains the record, group and transfer request entities plus the
result models produced by the import pipeline.
"""

from .error_record import ErrorRecord
from .import_result import ImportResult, IngestReport, RowOutcome, RowStatus, SkipReason
from .student import CANONICAL_FIELDS, Group, StudentRecord, TransferRequest

__all__ = [
    # Entities
    "CANONICAL_FIELDS",
    "Group",
    "StudentRecord",
    "TransferRequest",
    # Import results
    "ErrorRecord",
    "ImportResult",
    "IngestReport",
    "RowOutcome",
    "RowStatus",
    "SkipReason",
]
