from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error log of one import run.

An ImportErrorLog is bound to the file and group being imported. Rejected rows and
file-level failures (row -1) are collected in memory and written as JSON Lines by
flush(), into ``<log dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC, stamped on first
write). A run without errors leaves no file behind.
"""

__all__ = [
    "FILE_LEVEL_ROW",
    "ImportErrorLog",
]

FILE_LEVEL_ROW = -1
STAMP_FMT = "%Y%m%d-%H%M%S"


class ImportErrorLog:
    def __init__(self, log_dir: Path | str, *, file: str, group: str) -> None:
        self.log_dir = Path(log_dir)
        self.file = file
        self.group = group
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    def row_failed(self, row: int, message: str, error_type: str = "STORE_REJECTED_ROW") -> ErrorRecord:
        record = ErrorRecord.create(self.file, self.group, row, error_type, message)
        self._pending.append(record)
        return record

    def file_failed(self, message: str, error_type: str = "UNREADABLE_FILE") -> ErrorRecord:
        return self.row_failed(FILE_LEVEL_ROW, message, error_type)

    @property
    def pending(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def path(self) -> Path | None:
        """Log file written so far, None until the first flush with records."""
        return self._path

    def flush(self) -> Path | None:
        """Append pending records to the run's log file and return its path.

        Returns None (and creates nothing) when no record is pending.
        """
        if not self._pending:
            return None
        if self._path is None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._path = self.log_dir / f"errors-{datetime.now(UTC).strftime(STAMP_FMT)}.log"
        lines = "".join(record.to_json_line() + "\n" for record in self._pending)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(lines)
        self._pending.clear()
        return self._path
