from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

"""Student record, group and transfer request domain models.

Attribute names are snake_case; the camelCase names used by the canonical field
vocabulary (and by JSON payloads) are derived through FIELD_NAME_MAP.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "FIELD_NAME_MAP",
    "INTEGER_FIELDS",
    "Group",
    "StudentRecord",
    "TransferRequest",
    "to_attribute_name",
]


# Canonical field vocabulary (camelCase) -> dataclass attribute name
FIELD_NAME_MAP: dict[str, str] = {
    "name": "name",
    "nationalId": "national_id",
    "classRoom": "class_room",
    "studentCode": "student_code",
    "classCode": "class_code",
    "serialNumber": "serial_number",
    "birthDate": "birth_date",
    "birthDay": "birth_day",
    "birthMonth": "birth_month",
    "birthYear": "birth_year",
    "birthGovernorate": "birth_governorate",
    "gender": "gender",
    "religion": "religion",
    "nationality": "nationality",
    "lastCertificate": "last_certificate",
    "lastSchool": "last_school",
    "totalScore": "total_score",
    "guardianName": "guardian_name",
    "studentAddress": "student_address",
    "stage": "stage",
    "orphanStatus": "orphan_status",
    "enrollmentStatus": "enrollment_status",
    "tabletSerial": "tablet_serial",
    "imei": "imei",
    "insuranceNumber": "insurance_number",
    "enrollmentDate": "enrollment_date",
    "notes": "notes",
}

CANONICAL_FIELDS: tuple[str, ...] = tuple(FIELD_NAME_MAP)

# Stored as INTEGER columns; everything else is TEXT
INTEGER_FIELDS: frozenset[str] = frozenset({"serialNumber", "birthDay", "birthMonth", "birthYear"})

_ATTRIBUTE_TO_FIELD = {attr: name for name, attr in FIELD_NAME_MAP.items()}


def to_attribute_name(field_name: str) -> str:
    """Map a canonical field name (camelCase) or attribute name to the attribute name."""
    if field_name in FIELD_NAME_MAP:
        return FIELD_NAME_MAP[field_name]
    if field_name in _ATTRIBUTE_TO_FIELD or field_name in ("id", "group_id"):
        return field_name
    if field_name == "groupId":
        return "group_id"
    raise KeyError(f"unknown student field: {field_name}")


def _coerce_integer(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(str(value).strip()))
        except ValueError:
            return None


@dataclass(frozen=True)
class StudentRecord:
    """A stored student row.

    ``name`` and ``national_id`` are NOT NULL in the store; every other field is
    optional. ``id`` is assigned by the store on creation.
    """
    name: str
    national_id: str
    id: int | None = None
    group_id: int | None = None
    class_room: str | None = None
    student_code: str | None = None
    class_code: str | None = None
    serial_number: int | None = None
    birth_date: str | None = None
    birth_day: int | None = None
    birth_month: int | None = None
    birth_year: int | None = None
    birth_governorate: str | None = None
    gender: str | None = None
    religion: str | None = None
    nationality: str | None = None
    last_certificate: str | None = None
    last_school: str | None = None
    total_score: str | None = None
    guardian_name: str | None = None
    student_address: str | None = None
    stage: str | None = None
    orphan_status: str | None = None
    enrollment_status: str | None = None
    tablet_serial: str | None = None
    imei: str | None = None
    insurance_number: str | None = None
    enrollment_date: str | None = None
    notes: str | None = None

    @classmethod
    def from_fields(
        cls, values: dict[str, Any], *, id: int | None = None, group_id: int | None = None
    ) -> StudentRecord:
        """Build a record from a mapping keyed by canonical (camelCase) or attribute names.

        Integer fields are coerced; values that do not parse as integers become None.
        Raises KeyError on unknown field names.
        """
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            attr = to_attribute_name(key)
            if _ATTRIBUTE_TO_FIELD.get(attr) in INTEGER_FIELDS:
                value = _coerce_integer(value)
            kwargs[attr] = value
        kwargs.setdefault("name", "")
        kwargs.setdefault("national_id", "")
        if id is not None:
            kwargs["id"] = id
        if group_id is not None:
            kwargs["group_id"] = group_id
        return cls(**kwargs)

    def with_updates(self, values: dict[str, Any]) -> StudentRecord:
        """Return a copy with the given fields replaced (partial update)."""
        merged = self.to_dict(camel=False)
        merged.update({to_attribute_name(k): v for k, v in values.items()})
        return StudentRecord.from_fields(merged)

    def with_id(self, record_id: int) -> StudentRecord:
        return replace(self, id=record_id)

    def to_dict(self, *, camel: bool = True, skip_none: bool = False) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if skip_none and value is None:
                continue
            if camel:
                key = _ATTRIBUTE_TO_FIELD.get(f.name, "groupId" if f.name == "group_id" else f.name)
            else:
                key = f.name
            out[key] = value
        return out


@dataclass(frozen=True)
class Group:
    """A named import batch."""
    id: int
    name: str
    created_at: str  # ISO8601 UTC


@dataclass(frozen=True)
class TransferRequest:
    """Transfer of one student between schools. Never updated in place."""
    id: int | None
    student_id: int
    from_school: str
    to_school: str
    request_date: str
    transfer_reason: str | None = None
    status: str = field(default="pending")
