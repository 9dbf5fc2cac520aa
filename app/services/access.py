"""
Role-scoped visibility for evaluations and employee rosters.

The acting identity (Principal) always comes from a verified access token.
Query parameters can only narrow what a caller sees, never widen it.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from app.core.exceptions import AccessDeniedError
from app.models.evaluation import EvaluationStatus
from app.models.user import UserRole

logger = logging.getLogger(__name__)

# Drafts stay private to the evaluator until submitted
EMPLOYEE_VISIBLE_STATUSES = (
    EvaluationStatus.PENDING_EMPLOYEE.value,
    EvaluationStatus.PENDING_SUPERVISOR.value,
    EvaluationStatus.COMPLETED.value,
)


@dataclass(frozen=True)
class Principal:
    id: str
    role: UserRole
    name: str = ""
    department: Optional[str] = None

    @property
    def is_hr(self) -> bool:
        return self.role == UserRole.HR

    @property
    def is_management(self) -> bool:
        return self.role == UserRole.MANAGEMENT

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE


@dataclass(frozen=True)
class QueryScope:
    """Store filter: ``where`` AND (any of ``any_of``)."""
    where: Dict[str, Any] = field(default_factory=dict)
    any_of: Optional[List[Dict[str, Any]]] = None


def _owner_clauses(evaluator_id: str) -> List[Dict[str, Any]]:
    return [{"created_by": evaluator_id}, {"assigned_evaluator_id": evaluator_id}]


def evaluation_scope(
    principal: Principal,
    employee_id: Optional[str] = None,
    evaluator_id: Optional[str] = None,
    mode: Optional[str] = None,
) -> Optional[QueryScope]:
    """
    Translate a list request into a store filter.

    Returns None for an unscoped request (no employee_id, no evaluator_id and
    mode != "all"): the caller must answer with an empty list rather than the
    whole table.
    """
    wants_all = mode == "all"
    if not employee_id and not evaluator_id and not wants_all:
        logger.info(f"Unscoped evaluation query by {principal.id}; returning no rows")
        return None

    if principal.is_employee:
        if wants_all or evaluator_id or employee_id != principal.id:
            raise AccessDeniedError("Employees can only list their own evaluations")
        return QueryScope(where={"employee_id": principal.id, "status": EMPLOYEE_VISIBLE_STATUSES})

    if principal.is_management:
        if wants_all:
            raise AccessDeniedError("Only HR can list all evaluations")
        if evaluator_id and evaluator_id != principal.id:
            raise AccessDeniedError("Evaluators can only list their own evaluations")
        where = {"employee_id": employee_id} if employee_id else {}
        return QueryScope(where=where, any_of=_owner_clauses(principal.id))

    # HR: any scope; filters combine when both are given
    where = {"employee_id": employee_id} if employee_id else {}
    any_of = _owner_clauses(evaluator_id) if evaluator_id else None
    return QueryScope(where=where, any_of=any_of)


def roster_evaluator(principal: Principal, evaluator_id: Optional[str] = None) -> Optional[str]:
    """
    Evaluator whose assigned employees bound an employee listing,
    or None for the unrestricted listing (HR only).
    """
    if principal.is_hr:
        return evaluator_id or None
    if principal.is_management:
        if evaluator_id and evaluator_id != principal.id:
            raise AccessDeniedError("Evaluators can only list their own employees")
        return principal.id
    raise AccessDeniedError("Employees cannot list other employees")


def is_evaluation_owner(principal: Principal, evaluation: Mapping[str, Any]) -> bool:
    return principal.id in (evaluation.get("created_by"), evaluation.get("assigned_evaluator_id"))


def can_view(principal: Principal, evaluation: Mapping[str, Any]) -> bool:
    if principal.is_hr:
        return True
    if principal.is_management:
        return is_evaluation_owner(principal, evaluation)
    return (
        evaluation.get("employee_id") == principal.id
        and evaluation.get("status") in EMPLOYEE_VISIBLE_STATUSES
    )


def ensure_can_view(principal: Principal, evaluation: Mapping[str, Any]):
    if not can_view(principal, evaluation):
        raise AccessDeniedError("You do not have access to this evaluation")


def ensure_can_edit(principal: Principal, evaluation: Mapping[str, Any]):
    """Evaluator-side actions: save, submit, finalize."""
    if principal.is_hr:
        return
    if principal.is_management and is_evaluation_owner(principal, evaluation):
        return
    raise AccessDeniedError("Only the evaluator of record or HR can change this evaluation")


def ensure_can_respond(principal: Principal, evaluation: Mapping[str, Any]):
    if evaluation.get("employee_id") != principal.id:
        raise AccessDeniedError("Only the evaluated employee can respond")
