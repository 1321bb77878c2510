from __future__ import annotations

import pytest

from student_registry.db.store import StoreError
from student_registry.models.student import StudentRecord, TransferRequest

NOW = "2026-01-01T00:00:00Z"


def _student(name: str, national_id: str, group_id: int | None = None) -> StudentRecord:
    return StudentRecord(name=name, national_id=national_id, group_id=group_id)


def _transfer(student_id: int) -> TransferRequest:
    return TransferRequest(
        id=None,
        student_id=student_id,
        from_school="A",
        to_school="B",
        request_date="2026-01-02",
    )


def test_create_group_assigns_ids(store):
    g1 = store.create_group("grade 1", NOW)
    g2 = store.create_group("grade 1", NOW)
    assert g1.id != g2.id
    assert [g.name for g in store.get_groups()] == ["grade 1", "grade 1"]


def test_create_student_assigns_id(store):
    created = store.create_student(_student("Ahmed", "1"))
    assert created.id is not None
    assert store.get_student(created.id) == created
    assert store.get_student_by_national_id("1") == created
    assert store.get_student_by_national_id("nope") is None


def test_national_id_is_unique(store):
    store.create_student(_student("Ahmed", "1"))
    with pytest.raises(StoreError, match="unique"):
        store.create_student(_student("Mona", "1"))
    assert len(store.get_all_students()) == 1


@pytest.mark.parametrize("record", [_student("", "1"), _student("a", "")])
def test_identity_fields_are_required(store, record):
    with pytest.raises(StoreError):
        store.create_student(record)


def test_get_all_students_sorted_by_name(store):
    for name, nid in [("Mona", "2"), ("Ahmed", "1"), ("Zein", "3")]:
        store.create_student(_student(name, nid))
    assert [s.name for s in store.get_all_students()] == ["Ahmed", "Mona", "Zein"]


def test_search_students(store):
    store.create_student(_student("Ahmed Ali", "30101"))
    store.create_student(_student("Mona", "30202"))
    assert [s.name for s in store.search_students("301")] == ["Ahmed Ali"]
    assert [s.name for s in store.search_students("ali", "name")] == ["Ahmed Ali"]
    assert [s.name for s in store.search_students("30")] == ["Ahmed Ali", "Mona"]
    assert store.search_students("xyz", "name") == []


def test_update_student(store):
    created = store.create_student(_student("Ahmed", "1"))
    updated = store.update_student(created.id, {"gender": "ذكر"})
    assert updated is not None
    assert updated.gender == "ذكر"
    assert updated.id == created.id
    assert store.get_student(created.id).gender == "ذكر"
    assert store.update_student(999, {"gender": "x"}) is None


def test_update_student_keeps_its_id(store):
    created = store.create_student(_student("Ahmed", "1"))
    updated = store.update_student(created.id, {"id": 99, "gender": "ذكر"})
    assert updated.id == created.id
    assert store.get_student(99) is None


def test_update_student_keeps_uniqueness(store):
    store.create_student(_student("Ahmed", "1"))
    mona = store.create_student(_student("Mona", "2"))
    with pytest.raises(StoreError):
        store.update_student(mona.id, {"nationalId": "1"})
    assert store.get_student(mona.id).national_id == "2"


def test_delete_student(store):
    created = store.create_student(_student("Ahmed", "1"))
    assert store.delete_student(created.id) is True
    assert store.delete_student(created.id) is False


def test_transfer_requests(store):
    created = store.create_student(_student("Ahmed", "1"))
    request = store.create_transfer_request(_transfer(created.id))
    assert request.id is not None
    assert request.status == "pending"
    assert store.get_transfer_requests_by_student(created.id) == [request]
    with pytest.raises(StoreError):
        store.create_transfer_request(_transfer(999))


def test_delete_group_cascades(store):
    g1 = store.create_group("g1", NOW)
    g2 = store.create_group("g2", NOW)
    a = store.create_student(_student("a", "1", g1.id))
    b = store.create_student(_student("b", "2", g1.id))
    c = store.create_student(_student("c", "3", g2.id))
    store.create_transfer_request(_transfer(a.id))
    kept = store.create_transfer_request(_transfer(c.id))

    assert store.delete_group(g1.id) is True

    assert [g.id for g in store.get_groups()] == [g2.id]
    assert store.get_student(a.id) is None
    assert store.get_student(b.id) is None
    assert store.get_transfer_requests_by_student(a.id) == []
    assert store.get_student(c.id) == c
    assert store.get_transfer_requests_by_student(c.id) == [kept]


def test_delete_unknown_group_reports_false(store):
    keep = store.create_group("g", NOW)
    assert store.delete_group(keep.id + 100) is False
    assert store.get_groups() == [keep]
