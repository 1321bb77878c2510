from __future__ import annotations

import pytest

from student_registry.db.store import StoreError
from student_registry.models.import_result import RowStatus, SkipReason
from student_registry.models.student import StudentRecord
from student_registry.services.ingest import (
    TempNationalIdGenerator,
    bulk_create_or_skip,
    ingest,
    reconcile_row,
)
from student_registry.services.progress import ProgressTracker
from student_registry.tabular.reader import ContentError


def test_temp_id_generator_is_unique_within_run():
    gen = TempNationalIdGenerator("temp", stamp=1700000000000)
    assert [gen(), gen(), gen()] == [
        "temp-1700000000000-1",
        "temp-1700000000000-2",
        "temp-1700000000000-3",
    ]


def test_reconcile_row_classifies_and_reports_dropped_headers():
    fields, dropped = reconcile_row({"الاسم": "أحمد", "اسم ولي الامر": "12345", "Notes": "x"})
    assert fields == {"name": "أحمد", "insuranceNumber": "12345"}
    assert dropped == ("Notes",)


def test_bulk_create_applies_placeholder_and_temp_id(store):
    gen = TempNationalIdGenerator("tmp", stamp=1)
    outcomes = bulk_create_or_skip(
        store,
        [{"nationalId": "111"}, {"name": "Mona"}],
        group_id=7,
        placeholder_name="Unknown",
        id_generator=gen,
    )
    assert [o.status for o in outcomes] == [RowStatus.CREATED, RowStatus.CREATED]
    first, second = (o.record for o in outcomes)
    assert first.name == "Unknown"
    assert first.national_id == "111"
    assert second.name == "Mona"
    assert second.national_id == "tmp-1-1"
    assert first.group_id == second.group_id == 7


def test_bulk_create_skips_rows_without_identity(store):
    outcomes = bulk_create_or_skip(store, [{"gender": "ذكر"}, {}, {"name": ""}])
    assert all(o.status is RowStatus.SKIPPED for o in outcomes)
    assert all(o.skip_reason is SkipReason.MISSING_IDENTITY for o in outcomes)
    assert store.get_all_students() == []


def test_bulk_create_continues_after_store_rejection(store):
    failures = []
    outcomes = bulk_create_or_skip(
        store,
        [{"name": "a", "nationalId": "1"}, {"name": "b", "nationalId": "1"}, {"name": "c", "nationalId": "2"}],
        on_failure=lambda row, candidate, message: failures.append((row, candidate.name, message)),
    )
    assert [o.status for o in outcomes] == [RowStatus.CREATED, RowStatus.FAILED, RowStatus.CREATED]
    assert outcomes[1].error is not None
    assert len(failures) == 1
    assert failures[0][:2] == (2, "b")
    assert {s.name for s in store.get_all_students()} == {"a", "c"}


def test_bulk_create_row_numbers_are_one_based(store):
    outcomes = bulk_create_or_skip(store, [{"name": "a"}, {}])
    assert [o.row_number for o in outcomes] == [1, 2]


def test_bulk_create_feeds_progress(store):
    tracker = ProgressTracker(3)
    bulk_create_or_skip(
        store,
        [{"name": "a", "nationalId": "1"}, {}, {"name": "b", "nationalId": "1"}],
        progress=tracker,
    )
    assert tracker.counts == {RowStatus.CREATED: 1, RowStatus.SKIPPED: 1, RowStatus.FAILED: 1}
    assert tracker.processed == 3


class ExplodingStore:
    """Wraps a store and rejects one national id."""

    def __init__(self, inner, bad_id):
        self.inner = inner
        self.bad_id = bad_id

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def create_student(self, record: StudentRecord) -> StudentRecord:
        if record.national_id == self.bad_id:
            raise StoreError("connection reset")
        return self.inner.create_student(record)


def test_ingest_creates_group_and_counts_outcomes(store):
    rows = [
        {"الاسم": "أحمد", "الرقم القومي": "1"},
        {"الاسم": "منى", "الرقم القومي": "2"},
        {"ملاحظات": "nothing useful"},
    ]
    report = ingest(rows, "  grade 1 ", ExplodingStore(store, "2"))
    assert report.group is not None
    assert report.group.name == "grade 1"
    assert report.group.created_at.endswith("Z")
    assert (report.created_count, report.skipped_count, report.failed_count) == (1, 1, 1)
    assert report.total_rows == 3
    assert report.outcomes[2].unclassified_headers == ("ملاحظات",)
    assert [s.group_id for s in store.get_all_students()] == [report.group.id]


def test_ingest_every_row_gets_a_fresh_temp_id(store):
    rows = [{"الاسم": "a"}, {"الاسم": "b"}]
    report = ingest(rows, "g", store, temp_id_prefix="pending")
    ids = [r.national_id for r in report.created]
    assert len(set(ids)) == 2
    assert all(i.startswith("pending-") for i in ids)


def test_ingest_uses_configured_placeholder(store):
    report = ingest([{"الرقم القومي": "5"}], "g", store, placeholder_name="غير معروف")
    assert report.created[0].name == "غير معروف"


@pytest.mark.parametrize("group_name", ["", "   "])
def test_ingest_requires_group_name(store, group_name):
    with pytest.raises(ContentError):
        ingest([{"الاسم": "a"}], group_name, store)
    assert store.get_groups() == []
