"""
Evaluation lifecycle.

    DRAFT --submit_to_employee--> PENDING_EMPLOYEE --respond--> PENDING_SUPERVISOR --finalize--> COMPLETED

Every operation checks the source state before touching the record and then
writes with a compare-and-set on that state, so a failed or raced transition
leaves the stored evaluation exactly as it was.
"""
import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from app.core.exceptions import AccessDeniedError, InvalidStateError, NotFoundError, ValidationError
from app.core.timeutils import Clock, utc_now
from app.models.evaluation import EmployeeAgreement, EvaluationStatus
from app.models.user import UserRole
from app.services.access import Principal
from app.services.assignments import AssignmentResolver
from app.services.scoring import compute_score
from app.store import EVALUATIONS, USERS, Record, RecordStore

logger = logging.getLogger(__name__)

# Fields an evaluator may write while the evaluation is a draft
EDITABLE_FIELDS = (
    "employee_name",
    "job_title",
    "department",
    "period_from",
    "period_to",
    "ratings",
    "supervisor_comments",
)

TRANSITIONS = {
    "submit_to_employee": (EvaluationStatus.DRAFT, EvaluationStatus.PENDING_EMPLOYEE),
    "respond": (EvaluationStatus.PENDING_EMPLOYEE, EvaluationStatus.PENDING_SUPERVISOR),
    "finalize": (EvaluationStatus.PENDING_SUPERVISOR, EvaluationStatus.COMPLETED),
}


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class EvaluationWorkflow:
    def __init__(self, store: RecordStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or utc_now
        self.assignments = AssignmentResolver(store, clock=self.clock)

    def get(self, evaluation_id: str) -> Record:
        evaluation = self.store.find_by_id(EVALUATIONS, evaluation_id)
        if evaluation is None:
            raise NotFoundError("Evaluation not found", details={"id": evaluation_id})
        return evaluation

    def _new_id(self) -> str:
        candidate = str(int(self.clock().timestamp() * 1000))
        while self.store.find_by_id(EVALUATIONS, candidate) is not None:
            candidate = f"{candidate}-{uuid.uuid4().hex[:6]}"
        return candidate

    # ------------------------------------------------------------------
    # Draft editing
    # ------------------------------------------------------------------
    def save(self, data: Mapping[str, Any], actor: Principal) -> Record:
        """Create a new draft or update an existing one (upsert by id)."""
        evaluation_id = data.get("id")
        existing = self.store.find_by_id(EVALUATIONS, evaluation_id) if evaluation_id else None

        patch: Dict[str, Any] = {k: data[k] for k in EDITABLE_FIELDS if k in data and data[k] is not None}
        if "ratings" in patch:
            patch["ratings"] = {str(k): v for k, v in patch["ratings"].items()}

        if existing is not None:
            status = EvaluationStatus(existing["status"])
            if status != EvaluationStatus.DRAFT:
                raise InvalidStateError(
                    f"Evaluation {evaluation_id} is {status.value} and can no longer be edited",
                    details={"id": evaluation_id, "status": status.value},
                )
            if data.get("employee_id") and data["employee_id"] != existing["employee_id"]:
                raise ValidationError("The evaluated employee of an existing evaluation cannot change")
            patch["total_score"] = compute_score(patch.get("ratings", existing.get("ratings")))
            saved = self.store.upsert(
                EVALUATIONS, evaluation_id, patch,
                conditions={"status": EvaluationStatus.DRAFT.value},
            )
            logger.info(f"Saved draft evaluation {evaluation_id}", extra={"actor": actor.id})
            return saved

        employee_id = data.get("employee_id")
        if _blank(employee_id):
            raise ValidationError("employee_id is required")
        employee = self.store.find_by_id(USERS, employee_id)
        if employee is None or UserRole(employee["role"]) != UserRole.EMPLOYEE:
            raise NotFoundError(f"Employee {employee_id} not found")
        if actor.is_management and employee_id not in self.assignments.employees_for(actor.id):
            raise AccessDeniedError(f"Employee {employee_id} is not assigned to you")
        # Only HR may name the evaluator of record; otherwise it follows the roster
        assigned_evaluator_id = data.get("assigned_evaluator_id") if actor.is_hr else None

        evaluation_id = evaluation_id or self._new_id()
        ratings = patch.get("ratings", {})
        record = {
            "employee_id": employee_id,
            "created_by": actor.id,
            "assigned_evaluator_id": assigned_evaluator_id or self.assignments.evaluator_for(employee_id),
            "employee_name": employee.get("name"),
            "job_title": employee.get("job_title"),
            "department": employee.get("department"),
            "period_from": None,
            "period_to": None,
            "ratings": ratings,
            "supervisor_comments": None,
            **patch,
            "total_score": compute_score(ratings),
            "status": EvaluationStatus.DRAFT.value,
            "employee_agreement": "",
            "employee_comments": None,
            "manager_decision": None,
            "supervisor_signature": None,
            "supervisor_signed_at": None,
            "employee_signature": None,
            "employee_signed_at": None,
            "submitted_at": None,
            "responded_at": None,
            "finalized_at": None,
            "created_at": self.clock(),
        }
        saved = self.store.upsert(EVALUATIONS, evaluation_id, record)
        logger.info(
            f"Created draft evaluation {evaluation_id} for {employee_id}",
            extra={"actor": actor.id},
        )
        return saved

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _transition(self, name: str, evaluation_id: str, patch: Dict[str, Any]) -> Record:
        source, target = TRANSITIONS[name]
        saved = self.store.upsert(
            EVALUATIONS,
            evaluation_id,
            {**patch, "status": target.value},
            conditions={"status": source.value},
        )
        logger.info(
            f"Evaluation {evaluation_id}: {source.value} -> {target.value}",
            extra={"transition": name},
        )
        return saved

    def _require_state(self, name: str, evaluation: Record):
        source, _ = TRANSITIONS[name]
        if evaluation["status"] != source.value:
            raise InvalidStateError(
                f"Cannot {name.replace('_', ' ')}: evaluation is {evaluation['status']}, expected {source.value}",
                details={"id": evaluation["id"], "status": evaluation["status"]},
            )

    def submit_to_employee(self, evaluation_id: str, supervisor_signature: Optional[str]) -> Record:
        evaluation = self.get(evaluation_id)
        self._require_state("submit_to_employee", evaluation)
        if _blank(supervisor_signature):
            raise ValidationError("A supervisor signature is required to submit")
        now = self.clock()
        return self._transition("submit_to_employee", evaluation_id, {
            "submitted_at": now,
            "supervisor_signature": supervisor_signature,
            "supervisor_signed_at": now,
        })

    def respond(
        self,
        evaluation_id: str,
        employee_agreement: Optional[str],
        employee_comments: Optional[str],
        employee_signature: Optional[str],
    ) -> Record:
        evaluation = self.get(evaluation_id)
        self._require_state("respond", evaluation)
        try:
            agreement = EmployeeAgreement(employee_agreement)
        except ValueError:
            raise ValidationError("employee_agreement must be 'agree' or 'disagree'") from None
        if _blank(employee_signature):
            raise ValidationError("An employee signature is required to respond")
        now = self.clock()
        return self._transition("respond", evaluation_id, {
            "employee_agreement": agreement.value,
            "employee_comments": employee_comments or "",
            "responded_at": now,
            "employee_signature": employee_signature,
            "employee_signed_at": now,
        })

    def finalize(self, evaluation_id: str, manager_decision: Optional[str]) -> Record:
        evaluation = self.get(evaluation_id)
        self._require_state("finalize", evaluation)
        if _blank(manager_decision):
            raise ValidationError("A manager decision is required to finalize")
        return self._transition("finalize", evaluation_id, {
            "manager_decision": manager_decision,
            "finalized_at": self.clock(),
        })
