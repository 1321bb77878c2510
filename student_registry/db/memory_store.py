from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from ..models.student import Group, StudentRecord, TransferRequest
from .store import RecordStore, SearchType, StoreError

"""Dict-backed RecordStore.

Enforces the same constraints as the SQL schema (non-empty name, unique
national_id, transfer requests must reference an existing student). Used by the
CLI when no database is reachable and throughout the tests.
"""

__all__ = [
    "InMemoryRecordStore",
]

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    def __init__(self) -> None:
        self._groups: dict[int, Group] = {}
        self._students: dict[int, StudentRecord] = {}
        self._transfers: dict[int, TransferRequest] = {}
        self._next_group_id = 1
        self._next_student_id = 1
        self._next_transfer_id = 1

    # Groups
    def get_groups(self) -> list[Group]:
        return list(self._groups.values())

    def create_group(self, name: str, created_at: str) -> Group:
        if not name:
            raise StoreError("group name must not be empty")
        group = Group(id=self._next_group_id, name=name, created_at=created_at)
        self._groups[group.id] = group
        self._next_group_id += 1
        return group

    def delete_group(self, group_id: int) -> bool:
        if group_id not in self._groups:
            logger.warning("group %s not found", group_id)
            return False
        student_ids = {s.id for s in self._students.values() if s.group_id == group_id}
        transfer_ids = [t.id for t in self._transfers.values() if t.student_id in student_ids]
        for transfer_id in transfer_ids:
            del self._transfers[transfer_id]
        for student_id in student_ids:
            del self._students[student_id]  # type: ignore[arg-type]
        del self._groups[group_id]
        logger.debug(
            "group %s deleted transfers=%d students=%d", group_id, len(transfer_ids), len(student_ids)
        )
        return True

    # Students
    def get_all_students(self) -> list[StudentRecord]:
        return sorted(self._students.values(), key=lambda s: s.name)

    def get_student(self, student_id: int) -> StudentRecord | None:
        return self._students.get(student_id)

    def get_student_by_national_id(self, national_id: str) -> StudentRecord | None:
        for student in self._students.values():
            if student.national_id == national_id:
                return student
        return None

    def search_students(self, query: str, search_type: SearchType = "nationalId") -> list[StudentRecord]:
        needle = query.lower()
        attr = "national_id" if search_type == "nationalId" else "name"
        matches = [s for s in self._students.values() if needle in str(getattr(s, attr)).lower()]
        return sorted(matches, key=lambda s: s.name)

    def _check_constraints(self, record: StudentRecord, *, exclude_id: int | None = None) -> None:
        if not record.name:
            raise StoreError('null value in column "name" violates not-null constraint')
        if not record.national_id:
            raise StoreError('null value in column "national_id" violates not-null constraint')
        for student in self._students.values():
            if student.id != exclude_id and student.national_id == record.national_id:
                raise StoreError(
                    'duplicate key value violates unique constraint "students_national_id_unique"'
                )

    def create_student(self, record: StudentRecord) -> StudentRecord:
        self._check_constraints(record)
        created = record.with_id(self._next_student_id)
        self._students[created.id] = created  # type: ignore[index]
        self._next_student_id += 1
        return created

    def update_student(self, student_id: int, values: dict[str, Any]) -> StudentRecord | None:
        current = self._students.get(student_id)
        if current is None:
            return None
        updated = replace(current.with_updates(values), id=student_id)
        self._check_constraints(updated, exclude_id=student_id)
        self._students[student_id] = updated
        return updated

    def delete_student(self, student_id: int) -> bool:
        return self._students.pop(student_id, None) is not None

    # Transfer requests
    def create_transfer_request(self, request: TransferRequest) -> TransferRequest:
        if request.student_id not in self._students:
            raise StoreError(
                f'insert on "transfer_requests" violates foreign key: student {request.student_id} not found'
            )
        created = replace(request, id=self._next_transfer_id)
        self._transfers[created.id] = created  # type: ignore[index]
        self._next_transfer_id += 1
        return created

    def get_transfer_requests_by_student(self, student_id: int) -> list[TransferRequest]:
        return [t for t in self._transfers.values() if t.student_id == student_id]
