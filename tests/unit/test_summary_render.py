from __future__ import annotations

from datetime import UTC, datetime

import pytest

from student_registry.models.import_result import ImportResult
from student_registry.services.summary import format_number, render_summary_line


def _result(**overrides) -> ImportResult:
    t = datetime(2026, 1, 1, tzinfo=UTC)
    values = dict(
        created_count=2,
        total_rows=3,
        skipped_rows=1,
        failed_rows=0,
        group_id=1,
        start_time=t,
        end_time=t,
        elapsed_seconds=0.5,
        throughput_rows_per_sec=4.0,
    )
    values.update(overrides)
    return ImportResult(**values)


@pytest.mark.parametrize(
    "value, expected",
    [(0, "0"), (0.0, "0"), (3.0, "3"), (1.25, "1.25"), (0.000123, "0.000123"), (12345678.0, "12345678")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_render_summary_line():
    line = render_summary_line("طلاب 2026.xlsx", "الصف الأول", _result())
    assert line == (
        "SUMMARY file=طلاب_2026.xlsx group=الصف_الأول rows=3 created=2 skipped=1 failed=0 "
        "elapsed_sec=0.5 throughput_rps=4"
    )


def test_render_summary_line_blank_names():
    line = render_summary_line("", " ", _result())
    assert line.startswith("SUMMARY file=- group=- ")
