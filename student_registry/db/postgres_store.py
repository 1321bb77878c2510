from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from ..models.student import FIELD_NAME_MAP, Group, StudentRecord, TransferRequest, to_attribute_name
from .store import RecordStore, SearchType, StoreError

"""PostgreSQL RecordStore on top of a psycopg2 cursor.

Every write runs in its own explicit BEGIN/COMMIT so that one rejected row
(unique national_id, NOT NULL name, ...) is rolled back alone and the next row
starts from a clean transaction. The connection is expected in autocommit mode;
see student_registry.cli for connection handling.
"""

__all__ = [
    "PostgresRecordStore",
    "SCHEMA_SQL",
    "create_schema",
]

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS student_groups (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS students (
    id SERIAL PRIMARY KEY,
    group_id INTEGER,
    class_code TEXT,
    serial_number INTEGER,
    name TEXT NOT NULL,
    class_room TEXT,
    student_code TEXT,
    national_id TEXT NOT NULL UNIQUE,
    birth_date TEXT,
    birth_day INTEGER,
    birth_month INTEGER,
    birth_year INTEGER,
    birth_governorate TEXT,
    gender TEXT,
    religion TEXT,
    nationality TEXT,
    last_certificate TEXT,
    last_school TEXT,
    total_score TEXT,
    guardian_name TEXT,
    student_address TEXT,
    stage TEXT,
    orphan_status TEXT,
    enrollment_status TEXT,
    tablet_serial TEXT,
    imei TEXT,
    insurance_number TEXT,
    enrollment_date TEXT,
    notes TEXT
);
CREATE TABLE IF NOT EXISTS transfer_requests (
    id SERIAL PRIMARY KEY,
    student_id INTEGER NOT NULL REFERENCES students(id),
    from_school TEXT NOT NULL,
    to_school TEXT NOT NULL,
    transfer_reason TEXT,
    request_date TEXT NOT NULL,
    status TEXT DEFAULT 'pending'
);
"""

# Column names equal the dataclass attribute names
STUDENT_COLUMNS: tuple[str, ...] = ("id", "group_id", *FIELD_NAME_MAP.values())
_STUDENT_SELECT = f"SELECT {', '.join(STUDENT_COLUMNS)} FROM students"
_TRANSFER_COLUMNS = ("id", "student_id", "from_school", "to_school", "request_date", "transfer_reason", "status")


def create_schema(cursor: Any) -> None:
    """Create the three tables if they do not exist yet."""
    cursor.execute(SCHEMA_SQL)


def _row_to_student(row: Sequence[Any]) -> StudentRecord:
    return StudentRecord(**dict(zip(STUDENT_COLUMNS, row, strict=True)))


def _row_to_transfer(row: Sequence[Any]) -> TransferRequest:
    return TransferRequest(**dict(zip(_TRANSFER_COLUMNS, row, strict=True)))


class PostgresRecordStore(RecordStore):
    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    @contextmanager
    def _transaction(self) -> Iterator[Any]:
        cur = self._cursor
        try:
            cur.execute("BEGIN")
            yield cur
            cur.execute("COMMIT")
        except Exception as e:
            try:
                cur.execute("ROLLBACK")
            except Exception as rollback_e:  # pragma: no cover
                logger.error("rollback failed: %s", rollback_e)
            raise StoreError(str(e)) from e

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[Sequence[Any]]:
        try:
            self._cursor.execute(sql, tuple(params))
            return list(self._cursor.fetchall())
        except Exception as e:
            raise StoreError(str(e)) from e

    # Groups
    def get_groups(self) -> list[Group]:
        rows = self._query("SELECT id, name, created_at FROM student_groups ORDER BY id")
        return [Group(id=r[0], name=r[1], created_at=r[2]) for r in rows]

    def create_group(self, name: str, created_at: str) -> Group:
        with self._transaction() as cur:
            cur.execute(
                "INSERT INTO student_groups (name, created_at) VALUES (%s, %s) RETURNING id",
                (name, created_at),
            )
            group_id = cur.fetchone()[0]
        return Group(id=group_id, name=name, created_at=created_at)

    def delete_group(self, group_id: int) -> bool:
        try:
            if not self._query("SELECT id FROM student_groups WHERE id = %s", (group_id,)):
                logger.warning("group %s not found", group_id)
                return False
            with self._transaction() as cur:
                cur.execute(
                    "DELETE FROM transfer_requests WHERE student_id IN "
                    "(SELECT id FROM students WHERE group_id = %s)",
                    (group_id,),
                )
                cur.execute("DELETE FROM students WHERE group_id = %s", (group_id,))
                cur.execute("DELETE FROM student_groups WHERE id = %s", (group_id,))
        except StoreError as e:
            logger.error("error deleting group %s: %s", group_id, e)
            return False
        return True

    # Students
    def get_all_students(self) -> list[StudentRecord]:
        return [_row_to_student(r) for r in self._query(f"{_STUDENT_SELECT} ORDER BY name")]

    def get_student(self, student_id: int) -> StudentRecord | None:
        rows = self._query(f"{_STUDENT_SELECT} WHERE id = %s", (student_id,))
        return _row_to_student(rows[0]) if rows else None

    def get_student_by_national_id(self, national_id: str) -> StudentRecord | None:
        rows = self._query(f"{_STUDENT_SELECT} WHERE national_id = %s", (national_id,))
        return _row_to_student(rows[0]) if rows else None

    def search_students(self, query: str, search_type: SearchType = "nationalId") -> list[StudentRecord]:
        column = "national_id" if search_type == "nationalId" else "name"
        rows = self._query(f"{_STUDENT_SELECT} WHERE {column} ILIKE %s ORDER BY name", (f"%{query}%",))
        return [_row_to_student(r) for r in rows]

    def create_student(self, record: StudentRecord) -> StudentRecord:
        values = record.to_dict(camel=False, skip_none=True)
        values.pop("id", None)
        columns = list(values)
        placeholders = ", ".join(["%s"] * len(columns))
        sql = f"INSERT INTO students ({', '.join(columns)}) VALUES ({placeholders}) RETURNING id"
        with self._transaction() as cur:
            cur.execute(sql, tuple(values[c] for c in columns))
            new_id = cur.fetchone()[0]
        return record.with_id(new_id)

    def update_student(self, student_id: int, values: dict[str, Any]) -> StudentRecord | None:
        current = self.get_student(student_id)
        if current is None:
            return None
        # The primary key is never rewritten
        updates = {k: v for k, v in values.items() if to_attribute_name(k) != "id"}
        if not updates:
            return current
        merged = current.with_updates(updates).to_dict(camel=False)
        columns = [to_attribute_name(k) for k in updates]
        assignments = ", ".join(f"{c} = %s" for c in columns)
        with self._transaction() as cur:
            cur.execute(
                f"UPDATE students SET {assignments} WHERE id = %s",
                (*(merged[c] for c in columns), student_id),
            )
        return self.get_student(student_id)

    def delete_student(self, student_id: int) -> bool:
        with self._transaction() as cur:
            cur.execute("DELETE FROM students WHERE id = %s", (student_id,))
            deleted = cur.rowcount
        return bool(deleted)

    # Transfer requests
    def create_transfer_request(self, request: TransferRequest) -> TransferRequest:
        with self._transaction() as cur:
            cur.execute(
                "INSERT INTO transfer_requests "
                "(student_id, from_school, to_school, transfer_reason, request_date, status) "
                "VALUES (%s, %s, %s, %s, %s, %s) RETURNING id",
                (
                    request.student_id,
                    request.from_school,
                    request.to_school,
                    request.transfer_reason,
                    request.request_date,
                    request.status,
                ),
            )
            new_id = cur.fetchone()[0]
        return TransferRequest(
            id=new_id,
            student_id=request.student_id,
            from_school=request.from_school,
            to_school=request.to_school,
            request_date=request.request_date,
            transfer_reason=request.transfer_reason,
            status=request.status,
        )

    def get_transfer_requests_by_student(self, student_id: int) -> list[TransferRequest]:
        rows = self._query(
            f"SELECT {', '.join(_TRANSFER_COLUMNS)} FROM transfer_requests WHERE student_id = %s ORDER BY id",
            (student_id,),
        )
        return [_row_to_transfer(r) for r in rows]
