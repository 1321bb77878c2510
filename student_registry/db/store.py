from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from ..models.student import Group, StudentRecord, TransferRequest

"""Record store interface shared by the in-memory and PostgreSQL stores."""

__all__ = [
    "RecordStore",
    "SearchType",
    "StoreError",
]

SearchType = Literal["nationalId", "name"]


class StoreError(Exception):
    """A write or read the store rejected (constraint violation, driver error, ...)."""


class RecordStore(ABC):
    """Persistence contract for students, groups and transfer requests.

    Writes are atomic per call. Callers importing many rows call create_student
    once per row and decide themselves what to do with a StoreError.
    """

    # Groups
    @abstractmethod
    def get_groups(self) -> list[Group]: ...

    @abstractmethod
    def create_group(self, name: str, created_at: str) -> Group: ...

    @abstractmethod
    def delete_group(self, group_id: int) -> bool:
        """Delete transfer requests of the group's students, the students, then the group.

        Returns False when any step fails; no partial-deletion detail is reported.
        """

    # Students
    @abstractmethod
    def get_all_students(self) -> list[StudentRecord]: ...

    @abstractmethod
    def get_student(self, student_id: int) -> StudentRecord | None: ...

    @abstractmethod
    def get_student_by_national_id(self, national_id: str) -> StudentRecord | None: ...

    @abstractmethod
    def search_students(self, query: str, search_type: SearchType = "nationalId") -> list[StudentRecord]: ...

    @abstractmethod
    def create_student(self, record: StudentRecord) -> StudentRecord: ...

    @abstractmethod
    def update_student(self, student_id: int, values: dict[str, Any]) -> StudentRecord | None: ...

    @abstractmethod
    def delete_student(self, student_id: int) -> bool: ...

    # Transfer requests
    @abstractmethod
    def create_transfer_request(self, request: TransferRequest) -> TransferRequest: ...

    @abstractmethod
    def get_transfer_requests_by_student(self, student_id: int) -> list[TransferRequest]: ...
