"""
Out-of-office movement tracking.

A movement is open while it has no actual_return_timestamp; an employee has at
most one open movement. Status is never trusted from storage: it is derived
from the timestamps every time a movement is read.
"""
import csv
import io
import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from app.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.core.timeutils import Clock, as_utc, utc_now
from app.models.movement_log import MovementCategory, MovementStatus
from app.services.access import Principal
from app.store import MOVEMENT_LOGS, USERS, Record, RecordStore

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Employee ID",
    "Employee Name",
    "Department",
    "Category",
    "Destination",
    "Reason",
    "Departure",
    "Expected Return",
    "Actual Return",
    "Status",
]


def derive_status(
    expected_return_time: datetime,
    actual_return_timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> MovementStatus:
    """Strictly later than expected is overdue; returning exactly on time is not."""
    expected = as_utc(expected_return_time)
    if actual_return_timestamp is not None:
        if as_utc(actual_return_timestamp) > expected:
            return MovementStatus.OVERDUE
        return MovementStatus.ON_TIME
    if as_utc(now or utc_now()) > expected:
        return MovementStatus.OVERDUE
    return MovementStatus.OUT_OF_OFFICE


class MovementTracker:
    def __init__(self, store: RecordStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or utc_now

    def _with_status(self, movement: Record, now: datetime) -> Record:
        view = dict(movement)
        view["status"] = derive_status(
            movement["expected_return_time"], movement.get("actual_return_timestamp"), now
        ).value
        return view

    def open_movement(self, employee_id: str) -> Optional[Record]:
        open_rows = self.store.find_many(
            MOVEMENT_LOGS, {"employee_id": employee_id, "actual_return_timestamp": None}
        )
        if len(open_rows) > 1:
            logger.error(f"Data integrity error: employee {employee_id} has {len(open_rows)} open movements")
        return open_rows[-1] if open_rows else None

    def current_status(self, employee_id: str) -> MovementStatus:
        movement = self.open_movement(employee_id)
        if movement is None:
            return MovementStatus.IN_OFFICE
        return derive_status(movement["expected_return_time"], None, self.clock())

    def _new_id(self) -> str:
        candidate = str(int(self.clock().timestamp() * 1000))
        while self.store.find_by_id(MOVEMENT_LOGS, candidate) is not None:
            candidate = f"{candidate}-{uuid.uuid4().hex[:6]}"
        return candidate

    def check_out(
        self,
        actor: Principal,
        category: str,
        destination: str,
        reason: str,
        expected_return_time: datetime,
    ) -> Record:
        try:
            category_value = MovementCategory(category).value
        except ValueError:
            raise ValidationError("category must be 'work' or 'personal'") from None
        if not destination or not destination.strip():
            raise ValidationError("destination is required")
        if not reason or not reason.strip():
            raise ValidationError("reason is required")

        now = self.clock()
        expected = as_utc(expected_return_time)
        if expected <= now:
            raise ValidationError("Expected return time must be in the future")

        if self.open_movement(actor.id) is not None:
            raise ConflictError("You are already checked out. Check in before leaving again.")

        user = self.store.find_by_id(USERS, actor.id)
        if user is None:
            raise NotFoundError(f"User {actor.id} not found")

        movement_id = self._new_id()
        try:
            movement = self.store.upsert(MOVEMENT_LOGS, movement_id, {
                "employee_id": actor.id,
                "employee_name": user.get("name") or actor.name or actor.id,
                "department": user.get("department"),
                "category": category_value,
                "destination": destination.strip(),
                "reason": reason.strip(),
                "expected_return_time": expected,
                "departure_timestamp": now,
                "actual_return_timestamp": None,
                "status": MovementStatus.OUT_OF_OFFICE.value,
                "created_at": now,
            })
        except ConflictError:
            # Lost a race with a concurrent check-out for the same employee
            raise ConflictError("You are already checked out. Check in before leaving again.") from None
        logger.info(f"Employee {actor.id} checked out", extra={"movement_id": movement_id})
        return self._with_status(movement, now)

    def check_in(self, employee_id: str) -> Record:
        movement = self.open_movement(employee_id)
        if movement is None:
            raise InvalidStateError("You are not checked out")
        now = self.clock()
        status = derive_status(movement["expected_return_time"], now)
        saved = self.store.upsert(
            MOVEMENT_LOGS,
            movement["id"],
            {"actual_return_timestamp": now, "status": status.value},
            conditions={"actual_return_timestamp": None},
        )
        logger.info(
            f"Employee {employee_id} checked in ({status.value})",
            extra={"movement_id": movement["id"]},
        )
        return self._with_status(saved, now)

    def list_active(self) -> List[Record]:
        now = self.clock()
        rows = self.store.find_many(MOVEMENT_LOGS, {"actual_return_timestamp": None})
        rows.sort(key=lambda m: as_utc(m["departure_timestamp"]))
        return [self._with_status(m, now) for m in rows]

    def list_movements(
        self,
        department: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        employee_id: Optional[str] = None,
    ) -> List[Record]:
        where: Dict[str, Any] = {}
        if department:
            where["department"] = department
        if employee_id:
            where["employee_id"] = employee_id
        now = self.clock()
        rows = []
        for movement in self.store.find_many(MOVEMENT_LOGS, where):
            departed = as_utc(movement["departure_timestamp"]).date()
            if from_date and departed < from_date:
                continue
            if to_date and departed > to_date:
                continue
            rows.append(self._with_status(movement, now))
        # Newest first, as the report shows them
        rows.sort(key=lambda m: as_utc(m["departure_timestamp"]), reverse=True)
        return rows


def _fmt(value: Optional[datetime]) -> str:
    return as_utc(value).strftime("%Y-%m-%d %H:%M") if value else ""


def export_csv(movements: Iterable[Record]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for m in movements:
        writer.writerow([
            m["employee_id"],
            m["employee_name"],
            m.get("department") or "",
            m["category"],
            m["destination"],
            " ".join((m.get("reason") or "").splitlines()),
            _fmt(m.get("departure_timestamp")),
            _fmt(m.get("expected_return_time")),
            _fmt(m.get("actual_return_timestamp")),
            m["status"],
        ])
    return buffer.getvalue()
