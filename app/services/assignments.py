"""
Evaluator ↔ employee assignments.

Invariant: at most one active assignment per (evaluator_id, employee_id).
Assignments are never physically removed; unassigning flips is_active.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.timeutils import Clock, utc_now
from app.models.user import UserRole
from app.store import EVALUATOR_ASSIGNMENTS, USERS, Record, RecordStore

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AssignmentResolver:
    def __init__(self, store: RecordStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or utc_now

    # --- queries -------------------------------------------------------
    def list_active(self) -> List[Record]:
        return self.store.find_many(EVALUATOR_ASSIGNMENTS, {"is_active": True})

    def for_employee(self, employee_id: str) -> List[Record]:
        return self.store.find_many(EVALUATOR_ASSIGNMENTS, {"employee_id": employee_id, "is_active": True})

    def for_evaluator(self, evaluator_id: str) -> List[Record]:
        return self.store.find_many(EVALUATOR_ASSIGNMENTS, {"evaluator_id": evaluator_id, "is_active": True})

    def employees_for(self, evaluator_id: str) -> List[str]:
        seen = []
        for assignment in self.for_evaluator(evaluator_id):
            if assignment["employee_id"] not in seen:
                seen.append(assignment["employee_id"])
        return seen

    def evaluator_for(self, employee_id: str) -> Optional[str]:
        active = self.for_employee(employee_id)
        if not active:
            return None
        if len(active) > 1:
            logger.error(
                f"Data integrity error: employee {employee_id} has {len(active)} active evaluators",
                extra={"assignment_ids": [a["id"] for a in active]},
            )
            # Most recently created wins; id breaks ties
            active.sort(key=lambda a: (a.get("created_at") or _EPOCH, a["id"]))
        return active[-1]["evaluator_id"]

    def get(self, assignment_id: str) -> Record:
        assignment = self.store.find_by_id(EVALUATOR_ASSIGNMENTS, assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment not found")
        return assignment

    # --- commands ------------------------------------------------------
    def _require_user(self, user_id: str, role: UserRole, label: str) -> Record:
        user = self.store.find_by_id(USERS, user_id)
        if user is None:
            raise NotFoundError(f"{label.capitalize()} {user_id} not found")
        if UserRole(user["role"]) != role:
            raise ValidationError(f"User {user_id} is not a valid {label}")
        return user

    def _ensure_no_active_duplicate(self, evaluator_id: str, employee_id: str, exclude_id: Optional[str] = None):
        existing = self.store.find_many(
            EVALUATOR_ASSIGNMENTS,
            {"evaluator_id": evaluator_id, "employee_id": employee_id, "is_active": True},
        )
        if any(a["id"] != exclude_id for a in existing):
            raise ConflictError("Assignment already exists")

    def _new_id(self) -> str:
        candidate = str(int(self.clock().timestamp() * 1000))
        while self.store.find_by_id(EVALUATOR_ASSIGNMENTS, candidate) is not None:
            candidate = f"{candidate}-{uuid.uuid4().hex[:6]}"
        return candidate

    def assign(self, evaluator_id: str, employee_id: str, assigned_by: str) -> Record:
        self._require_user(evaluator_id, UserRole.MANAGEMENT, "evaluator")
        self._require_user(employee_id, UserRole.EMPLOYEE, "employee")
        self._ensure_no_active_duplicate(evaluator_id, employee_id)

        assignment_id = self._new_id()
        record = self.store.upsert(EVALUATOR_ASSIGNMENTS, assignment_id, {
            "evaluator_id": evaluator_id,
            "employee_id": employee_id,
            "assigned_by": assigned_by,
            "is_active": True,
            "created_at": self.clock(),
        })
        logger.info(f"Assigned evaluator {evaluator_id} to employee {employee_id}", extra={"assignment_id": assignment_id})
        return record

    def update(self, assignment_id: str, evaluator_id: Optional[str] = None, is_active: Optional[bool] = None) -> Record:
        current = self.get(assignment_id)
        patch = {}
        new_evaluator = current["evaluator_id"]
        if evaluator_id is not None and evaluator_id != current["evaluator_id"]:
            self._require_user(evaluator_id, UserRole.MANAGEMENT, "evaluator")
            patch["evaluator_id"] = new_evaluator = evaluator_id
        if is_active is not None:
            patch["is_active"] = is_active
        if not patch:
            return current
        if patch.get("is_active", current["is_active"]):
            self._ensure_no_active_duplicate(new_evaluator, current["employee_id"], exclude_id=assignment_id)
        return self.store.upsert(EVALUATOR_ASSIGNMENTS, assignment_id, patch)

    def unassign(self, assignment_id: str) -> Record:
        current = self.get(assignment_id)
        if not current["is_active"]:
            return current
        record = self.store.upsert(EVALUATOR_ASSIGNMENTS, assignment_id, {"is_active": False})
        logger.info(f"Deactivated assignment {assignment_id}")
        return record
