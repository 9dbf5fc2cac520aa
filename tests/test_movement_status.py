import csv
import io
import pytest
from datetime import date, timedelta
from app.core.exceptions import ConflictError, InvalidStateError, ValidationError
from app.models.movement_log import MovementStatus
from app.models.user import UserRole
from app.services.access import Principal
from app.services.movements import CSV_HEADER, MovementTracker, derive_status, export_csv

EMPLOYEE = Principal(id="emp01", role=UserRole.EMPLOYEE, name="Eva Employee")
OTHER = Principal(id="emp02", role=UserRole.EMPLOYEE, name="Ali Employee")

@pytest.fixture
def tracker(memory_store, clock):
    return MovementTracker(memory_store, clock=clock)

def _out(tracker, clock, who=EMPLOYEE, minutes=60, category="work"):
    return tracker.check_out(who, category, "Client site", "Meeting", clock.now + timedelta(minutes=minutes))

def test_derive_status_boundaries(clock):
    expected = clock.now
    assert derive_status(expected, expected + timedelta(minutes=1)) == MovementStatus.OVERDUE
    assert derive_status(expected, expected) == MovementStatus.ON_TIME
    assert derive_status(expected, expected - timedelta(minutes=5)) == MovementStatus.ON_TIME
    assert derive_status(expected, None, expected) == MovementStatus.OUT_OF_OFFICE
    assert derive_status(expected, None, expected + timedelta(seconds=1)) == MovementStatus.OVERDUE

def test_derive_status_accepts_naive_timestamps(clock):
    naive = clock.now.replace(tzinfo=None)
    assert derive_status(naive, clock.now + timedelta(minutes=1)) == MovementStatus.OVERDUE

def test_check_out_and_in_on_time(tracker, clock):
    movement = _out(tracker, clock)
    assert movement["status"] == MovementStatus.OUT_OF_OFFICE.value
    assert movement["employee_name"] == "Eva Employee"
    assert movement["department"] == "Engineering"
    assert tracker.current_status("emp01") == MovementStatus.OUT_OF_OFFICE

    clock.advance(minutes=60)
    returned = tracker.check_in("emp01")
    assert returned["status"] == MovementStatus.ON_TIME.value
    assert returned["actual_return_timestamp"] == clock.now
    assert tracker.current_status("emp01") == MovementStatus.IN_OFFICE

def test_late_return_is_overdue(tracker, clock):
    _out(tracker, clock, minutes=30)
    clock.advance(minutes=31)
    assert tracker.current_status("emp01") == MovementStatus.OVERDUE
    assert tracker.check_in("emp01")["status"] == MovementStatus.OVERDUE.value

def test_double_check_out_conflicts(tracker, clock):
    _out(tracker, clock)
    with pytest.raises(ConflictError):
        _out(tracker, clock)

def test_check_in_when_not_out(tracker):
    with pytest.raises(InvalidStateError):
        tracker.check_in("emp01")

def test_check_out_validation(tracker, clock):
    with pytest.raises(ValidationError):
        _out(tracker, clock, category="holiday")
    with pytest.raises(ValidationError):
        _out(tracker, clock, minutes=0)
    with pytest.raises(ValidationError):
        tracker.check_out(EMPLOYEE, "work", " ", "Meeting", clock.now + timedelta(hours=1))
    assert tracker.current_status("emp01") == MovementStatus.IN_OFFICE

def test_active_list_sorted_by_departure(tracker, clock):
    _out(tracker, clock, who=OTHER)
    clock.advance(minutes=5)
    _out(tracker, clock)
    active = tracker.list_active()
    assert [m["employee_id"] for m in active] == ["emp02", "emp01"]

def test_list_movements_filters(tracker, clock):
    _out(tracker, clock)
    clock.advance(minutes=10)
    tracker.check_in("emp01")
    clock.advance(days=2)
    _out(tracker, clock, who=OTHER)

    everything = tracker.list_movements()
    assert [m["employee_id"] for m in everything] == ["emp02", "emp01"]
    assert [m["employee_id"] for m in tracker.list_movements(department="Finance")] == ["emp02"]
    assert tracker.list_movements(employee_id="emp01")[0]["status"] == MovementStatus.ON_TIME.value

    first_day = date(2025, 3, 1)
    assert [m["employee_id"] for m in tracker.list_movements(from_date=first_day, to_date=first_day)] == ["emp01"]
    assert [m["employee_id"] for m in tracker.list_movements(from_date=date(2025, 3, 2))] == ["emp02"]

def test_csv_export(tracker, clock):
    _out(tracker, clock)
    text = export_csv(tracker.list_movements())
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == CSV_HEADER
    assert rows[1][0] == "emp01"
    assert rows[1][6] == "2025-03-01 09:00"
    assert rows[1][8] == ""
    assert rows[1][9] == "OUT_OF_OFFICE"

def test_stale_read_cannot_open_second_movement(tracker, clock, memory_store, monkeypatch):
    _out(tracker, clock)
    # A concurrent request that read "not out" before the first write landed
    monkeypatch.setattr(tracker, "open_movement", lambda employee_id: None)
    clock.advance(milliseconds=1)
    with pytest.raises(ConflictError):
        _out(tracker, clock)
    open_rows = memory_store.find_many("movement_logs", {"employee_id": "emp01", "actual_return_timestamp": None})
    assert len(open_rows) == 1
