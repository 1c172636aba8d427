from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from timetracker.errors import ConstraintViolation, StoreUnavailable
from timetracker.services.entry_store import EntryStore, _constraint_violation


def _t(hour: int, minute: int = 0, day: int = 14) -> datetime:
    return datetime(2026, 2, day, hour, minute)


def test_create_assigns_id_and_timestamps(store, clock):
    first = store.create(start_time=_t(8), end_time=_t(9), project="Project A")
    second = store.create(start_time=_t(10), end_time=_t(11), project="Project A", notes="x")

    assert first.id is not None
    assert second.id != first.id
    assert first.end_time > first.start_time
    assert first.notes is None
    assert second.notes == "x"
    assert first.created_at == first.updated_at
    assert second.created_at > first.created_at


def test_create_normalizes_aware_timestamps_to_utc(store):
    start = datetime(2026, 2, 14, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    end = datetime(2026, 2, 14, 11, 30, tzinfo=timezone(timedelta(hours=2)))

    row = store.create(start_time=start, end_time=end, project="Zoned")

    assert row.start_time == datetime(2026, 2, 14, 8, 0)
    assert row.end_time == datetime(2026, 2, 14, 9, 30)


@pytest.mark.parametrize("end_time", [_t(7), _t(8)])
def test_create_backstop_rejects_end_not_after_start(store, end_time):
    with pytest.raises(ConstraintViolation) as excinfo:
        store.create(start_time=_t(8), end_time=end_time, project="Project A")

    assert excinfo.value.field == "end_time"
    assert store.list() == []


@pytest.mark.parametrize(
    "detail",
    [
        "CHECK constraint failed: ck_entries_end_after_start",
        "CHECK constraint failed: end_time > start_time",
        'new row for relation "entries" violates check constraint "ck_entries_end_after_start"',
    ],
)
def test_end_after_start_violation_is_tagged_end_time(detail):
    violation = _constraint_violation(IntegrityError("INSERT", {}, Exception(detail)))

    assert violation.field == "end_time"
    assert violation.constraint == "ck_entries_end_after_start"


def test_other_check_failures_are_not_tagged_end_time():
    detail = "CHECK constraint failed: ck_entries_project_not_blank"

    violation = _constraint_violation(IntegrityError("INSERT", {}, Exception(detail)))

    assert violation.field is None
    assert violation.constraint is None
    assert violation.message == detail


def test_get_missing_returns_none(store):
    assert store.get(99999) is None


def test_list_filters_orders_and_paginates(store):
    a1 = store.create(start_time=_t(8), end_time=_t(9), project="Project A")
    a2 = store.create(start_time=_t(10), end_time=_t(11), project="Project A")
    b1 = store.create(start_time=_t(8, day=15), end_time=_t(9, day=15), project="Project B")
    a3 = store.create(start_time=_t(12), end_time=_t(13), project="Project A")

    assert [r.id for r in store.list()] == [b1.id, a3.id, a2.id, a1.id]

    only_a = store.list(project="Project A")
    assert [r.id for r in only_a] == [a3.id, a2.id, a1.id]
    assert all(r.project == "Project A" for r in only_a)

    assert [r.id for r in store.list(project="Project A", limit=1, offset=1)] == [a2.id]
    assert [r.id for r in store.list(limit=2)] == [b1.id, a3.id]
    assert store.list(project="Project A", offset=3) == []
    assert store.list(project="project a") == []


def test_update_notes_only_leaves_other_fields(store):
    row = store.create(start_time=_t(8), end_time=_t(9), project="Project A")

    updated = store.update(row.id, {"notes": "Only notes changed"})

    assert updated.notes == "Only notes changed"
    assert updated.start_time == row.start_time
    assert updated.end_time == row.end_time
    assert updated.project == row.project
    assert updated.created_at == row.created_at
    assert updated.updated_at > row.updated_at


def test_update_backstop_rejects_and_keeps_row(store):
    row = store.create(start_time=_t(8), end_time=_t(9), project="Project A")

    with pytest.raises(ConstraintViolation):
        store.update(row.id, {"start_time": _t(10)})

    unchanged = store.get(row.id)
    assert unchanged.start_time == row.start_time
    assert unchanged.updated_at == row.updated_at


def test_update_missing_returns_none(store):
    assert store.update(424242, {"notes": "nope"}) is None


def test_update_with_no_fields_is_a_noop(store):
    row = store.create(start_time=_t(8), end_time=_t(9), project="Project A")

    same = store.update(row.id, {})

    assert same.updated_at == row.updated_at


def test_update_rejects_immutable_fields(store):
    row = store.create(start_time=_t(8), end_time=_t(9), project="Project A")

    with pytest.raises(ValueError):
        store.update(row.id, {"created_at": _t(1)})


def test_delete_is_true_once_then_false(store):
    row = store.create(start_time=_t(8), end_time=_t(9), project="Project A")

    assert store.delete(row.id) is True
    assert store.delete(row.id) is False
    assert store.get(row.id) is None


def test_aggregate_by_project(store):
    store.create(start_time=_t(8), end_time=_t(9), project="Project A")
    store.create(start_time=_t(10), end_time=_t(12), project="Project A")
    store.create(start_time=_t(8, day=15), end_time=_t(9, 30, day=15), project="Project B")

    stats = store.aggregate_by_project()

    assert [s.project for s in stats] == ["Project A", "Project B"]
    project_a, project_b = stats
    assert project_a.total_entries == 2
    assert project_a.total_hours == pytest.approx(3.0, abs=1e-6)
    assert project_a.first_entry == _t(8)
    assert project_a.last_entry == _t(12)
    assert project_b.total_entries == 1
    assert project_b.total_hours == pytest.approx(1.5, abs=1e-6)


def test_aggregate_skips_projects_without_entries(store):
    row = store.create(start_time=_t(8), end_time=_t(9), project="Gone")
    store.create(start_time=_t(8), end_time=_t(9), project="Kept")
    store.delete(row.id)

    assert [s.project for s in store.aggregate_by_project()] == ["Kept"]


def test_ping(store):
    store.ping()


def test_ping_unreachable_database_raises(tmp_path):
    # init() is never called, so the parent directory does not exist
    broken = EntryStore(f"sqlite:///{tmp_path / 'missing' / 'nested' / 'db.sqlite'}")
    try:
        with pytest.raises(StoreUnavailable):
            broken.ping()
    finally:
        broken.close()


def test_requires_database_url_or_engine():
    with pytest.raises(ValueError):
        EntryStore()
