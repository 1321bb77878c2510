from __future__ import annotations

import json
import re
from pathlib import Path

from student_registry.logging.error_log import FILE_LEVEL_ROW, ImportErrorLog
from student_registry.models.error_record import ErrorRecord


def test_error_record_create_and_serialize():
    rec = ErrorRecord.create(
        file="students.csv", group="الصف الأول", row=3, error_type="STORE_REJECTED_ROW", message="dup"
    )
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z", rec.timestamp)
    data = json.loads(rec.to_json_line())
    assert list(data) == ["timestamp", "file", "group", "row", "error_type", "message"]
    assert "الصف الأول" in rec.to_json_line()


def test_records_carry_file_and_group(tmp_path: Path):
    log = ImportErrorLog(tmp_path, file="a.csv", group="g")
    rec = log.row_failed(4, "duplicate national id")
    assert (rec.file, rec.group, rec.row, rec.error_type) == ("a.csv", "g", 4, "STORE_REJECTED_ROW")
    assert log.pending == (rec,)
    assert len(log) == 1


def test_file_failed_uses_row_minus_one(tmp_path: Path):
    log = ImportErrorLog(tmp_path, file="a.json", group="g")
    rec = log.file_failed("invalid JSON")
    assert rec.row == FILE_LEVEL_ROW == -1
    assert rec.error_type == "UNREADABLE_FILE"


def test_nothing_pending_writes_nothing(tmp_path: Path):
    log = ImportErrorLog(tmp_path / "logs", file="a.csv", group="g")
    assert log.flush() is None
    assert log.path is None
    assert not (tmp_path / "logs").exists()


def test_flush_writes_json_lines(tmp_path: Path):
    log = ImportErrorLog(tmp_path / "logs", file="a.csv", group="g")
    log.row_failed(1, "first")
    log.row_failed(4, "second")

    path = log.flush()
    assert path is not None
    assert path == log.path
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["row"] for line in lines] == [1, 4]
    assert log.pending == ()


def test_second_flush_appends_to_same_file(tmp_path: Path):
    log = ImportErrorLog(str(tmp_path), file="a.csv", group="g")
    log.row_failed(1, "x")
    first = log.flush()
    log.row_failed(2, "y")
    second = log.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2
