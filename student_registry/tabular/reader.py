from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from io import BytesIO
from typing import Any

import pandas as pd

"""Raw tabular reader: uploaded file bytes -> ordered raw rows.

Three input shapes are accepted:
- JSON: an array of flat objects (a single object is wrapped in a list)
- delimited text (CSV/TSV), tokenized line by line by tokenize_line()
- spreadsheet (xlsx): first sheet only, first row is the header row

Every row is a mapping raw header -> cell text. Headers are kept exactly as
authored; interpretation happens later in student_registry.mapping.
"""

__all__ = [
    "ContentError",
    "RawRow",
    "TabularData",
    "decode_text",
    "read",
    "read_delimited",
    "read_json",
    "read_spreadsheet",
    "tokenize_line",
]

RawRow = dict[str, str]

JSON_EXTENSIONS = frozenset({"json"})
DELIMITED_EXTENSIONS = frozenset({"csv", "txt"})
TAB_EXTENSIONS = frozenset({"tsv", "tab"})
SPREADSHEET_EXTENSIONS = frozenset({"xlsx", "xlsm", "xls"})

# Tried in order when the bytes are not valid UTF-8 (Arabic Windows exports)
FALLBACK_ENCODINGS = ("cp1256",)


class ContentError(Exception):
    """Raised when an uploaded file cannot be turned into header + data rows."""


@dataclass
class TabularData:
    source_format: str  # json / delimited / spreadsheet
    columns: list[str]  # raw headers in source order
    rows: list[RawRow]


def decode_text(data: bytes) -> str:
    """Decode uploaded bytes as UTF-8 (BOM tolerated), falling back to cp1256."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    for encoding in FALLBACK_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ContentError("file is not valid UTF-8 or cp1256 text")


def _cell_to_text(value: Any) -> str:
    """Coerce a cell to its display string. Missing cells become ''."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, pd.Timestamp)):
        if pd.isna(value):
            return ""
        if (value.hour, value.minute, value.second, value.microsecond) == (0, 0, 0, 0):
            return value.strftime("%Y-%m-%d")
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def _is_empty_row(values: Any) -> bool:
    # Whitespace-only cells count as empty in every format
    return all(not str(v).strip() for v in values)


def _zip_row(headers: list[str], values: list[str]) -> RawRow:
    # Missing trailing cells default to '', surplus cells are ignored
    return {header: (values[idx] if idx < len(values) else "") for idx, header in enumerate(headers)}


def tokenize_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one delimited-text line into trimmed fields.

    A '"' toggles quoting, except that '""' inside quotes emits a literal '"'.
    The delimiter only separates fields outside quotes. The final field is
    flushed at end of line, so 'a,' yields ['a', ''].
    """
    result: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    result.append("".join(current).strip())
    return result


def read_delimited(text: str, delimiter: str = ",") -> TabularData:
    """Parse delimited text with the first non-blank line as the header row."""
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise ContentError("file must contain a header row and at least one data row")

    headers = tokenize_line(lines[0], delimiter)
    rows: list[RawRow] = []
    for line in lines[1:]:
        values = tokenize_line(line, delimiter)
        if _is_empty_row(values):
            continue
        rows.append(_zip_row(headers, values))
    return TabularData(source_format="delimited", columns=headers, rows=rows)


def read_json(text: str) -> TabularData:
    """Parse a JSON array of flat objects (or a single object)."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ContentError(f"invalid JSON: {e}") from e

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ContentError(f"expected a JSON array of objects, got {type(data).__name__}")

    columns: list[str] = []
    seen: set[str] = set()
    rows: list[RawRow] = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise ContentError(f"JSON element {idx} is not an object")
        row = {str(k): _cell_to_text(v) for k, v in item.items()}
        for key in row:
            if key not in seen:
                seen.add(key)
                columns.append(key)
        if _is_empty_row(row.values()):
            continue
        rows.append(row)
    return TabularData(source_format="json", columns=columns, rows=rows)


def read_spreadsheet(data: bytes, na_strings: list[str] | tuple[str, ...] | None = None) -> TabularData:
    """Read the first worksheet of a workbook; row 1 is the header row.

    Cell text is kept as authored, so 'NA' or 'NULL' stay strings as they do in
    CSV and JSON input. Only blank cells, plus any text listed in na_strings, are
    read as empty.

    Parameters
    ----------
    data: workbook bytes
    na_strings: extra cell strings to read as blank (e.g. ['-', 'N/A'])
    """
    try:
        xls = pd.ExcelFile(BytesIO(data))
    except Exception as e:
        raise ContentError(f"unreadable spreadsheet: {e}") from e

    if not xls.sheet_names:
        raise ContentError("spreadsheet contains no worksheet")

    df = xls.parse(
        xls.sheet_names[0],
        header=None,
        dtype=object,
        keep_default_na=False,
        na_values=list(na_strings) if na_strings else None,
    )
    matrix = df.values.tolist()
    if len(matrix) < 2:
        raise ContentError("spreadsheet must contain a header row and at least one data row")

    headers = [_cell_to_text(h).strip() for h in matrix[0]]
    rows: list[RawRow] = []
    for raw in matrix[1:]:
        values = [_cell_to_text(v).strip() for v in raw]
        if _is_empty_row(values):
            continue
        rows.append(_zip_row(headers, values))
    return TabularData(source_format="spreadsheet", columns=headers, rows=rows)


def read(
    data: bytes,
    format_hint: str | None = None,
    *,
    delimiter: str = ",",
    na_strings: list[str] | tuple[str, ...] | None = None,
) -> TabularData:
    """Read uploaded bytes into raw rows.

    format_hint is a file extension ('csv', '.xlsx', 'json', ...). Unknown hints try
    JSON first, then delimited text.

    Raises:
        ContentError: when the file cannot yield at least one non-empty data row.
    """
    ext = (format_hint or "").strip().lower().lstrip(".")

    if ext in SPREADSHEET_EXTENSIONS:
        table = read_spreadsheet(data, na_strings=na_strings)
    elif ext in JSON_EXTENSIONS:
        table = read_json(decode_text(data))
    elif ext in DELIMITED_EXTENSIONS:
        table = read_delimited(decode_text(data), delimiter)
    elif ext in TAB_EXTENSIONS:
        table = read_delimited(decode_text(data), "\t")
    else:
        text = decode_text(data)
        try:
            json.loads(text)
        except json.JSONDecodeError:
            table = read_delimited(text, delimiter)
        else:
            table = read_json(text)

    if not table.rows:
        raise ContentError("file is empty or contains no data rows")
    return table
