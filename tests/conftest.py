# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from student_registry.db.memory_store import InMemoryRecordStore
from student_registry.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """placeholder_name: Unknown
temp_national_id_prefix: temp
csv_delimiter: ","
na_strings: ["-"]
error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: registry
  password: secret
  database: school
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def no_db(monkeypatch) -> None:
    """Force the CLI into the in-memory store."""
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    reset_logging()


@pytest.fixture()
def make_xlsx() -> Callable[[Path, list[list[object]]], Path]:
    """Write rows (first row = headers) to the first sheet of a new workbook."""
    def _make(path: Path, rows: list[list[object]], extra_sheets: dict[str, list[list[object]]] | None = None) -> Path:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
            for name, sheet_rows in (extra_sheets or {}).items():
                pd.DataFrame(sheet_rows).to_excel(writer, sheet_name=name, header=False, index=False)
        return path
    return _make
