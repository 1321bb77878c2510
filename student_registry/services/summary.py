from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for import runs."""

__all__ = [
    "format_number",
    "render_summary_line",
]


def format_number(value: float) -> str:
    """Render a metric without scientific notation or a trailing '.0'."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(file_name: str, group_name: str, result: ImportResult) -> str:
    """Render the SUMMARY line for one import.

    Format:
    SUMMARY file={name} group={group} rows={total} created={c} skipped={s}
    failed={f} elapsed_sec={elapsed} throughput_rps={throughput}

    Whitespace in file and group names is replaced by '_' so the line stays
    splittable on spaces.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = ImportResult(
        ...     created_count=3, total_rows=4, skipped_rows=1, failed_rows=0, group_id=1,
        ...     start_time=t, end_time=t, elapsed_seconds=2.0, throughput_rows_per_sec=1.5,
        ... )
        >>> render_summary_line("a.csv", "grade 1", r)
        'SUMMARY file=a.csv group=grade_1 rows=4 created=3 skipped=1 failed=0 elapsed_sec=2 throughput_rps=1.5'
    """
    safe_file = "_".join(file_name.split()) or "-"
    safe_group = "_".join(group_name.split()) or "-"
    return (
        f"SUMMARY file={safe_file} "
        f"group={safe_group} "
        f"rows={result.total_rows} "
        f"created={result.created_count} "
        f"skipped={result.skipped_rows} "
        f"failed={result.failed_rows} "
        f"elapsed_sec={format_number(result.elapsed_seconds)} "
        f"throughput_rps={format_number(result.throughput_rows_per_sec)}"
    )
