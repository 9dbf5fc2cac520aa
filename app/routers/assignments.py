from typing import List

from fastapi import APIRouter, Depends

from app.dependencies import Principal, get_assignment_resolver, require_hr
from app.schemas.assignment import AssignmentCreate, AssignmentResponse, AssignmentUpdate
from app.services.assignments import AssignmentResolver

router = APIRouter(
    prefix="/evaluator-assignments",
    tags=["evaluator-assignments"],
    dependencies=[Depends(require_hr())],
)


@router.get("", response_model=List[AssignmentResponse])
def list_assignments(assignments: AssignmentResolver = Depends(get_assignment_resolver)):
    """Active assignments only."""
    return assignments.list_active()


@router.get("/employee/{employee_id}", response_model=List[AssignmentResponse])
def assignments_by_employee(employee_id: str, assignments: AssignmentResolver = Depends(get_assignment_resolver)):
    return assignments.for_employee(employee_id)


@router.get("/evaluator/{evaluator_id}", response_model=List[AssignmentResponse])
def assignments_by_evaluator(evaluator_id: str, assignments: AssignmentResolver = Depends(get_assignment_resolver)):
    return assignments.for_evaluator(evaluator_id)


@router.post("", response_model=AssignmentResponse)
def create_assignment(
    data: AssignmentCreate,
    current_user: Principal = Depends(require_hr()),
    assignments: AssignmentResolver = Depends(get_assignment_resolver),
):
    # assigned_by is the authenticated HR user, not a client-supplied field
    return assignments.assign(data.evaluator_id, data.employee_id, assigned_by=current_user.id)


@router.put("/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    assignment_id: str,
    data: AssignmentUpdate,
    assignments: AssignmentResolver = Depends(get_assignment_resolver),
):
    return assignments.update(assignment_id, evaluator_id=data.evaluator_id, is_active=data.is_active)


@router.delete("/{assignment_id}")
def delete_assignment(assignment_id: str, assignments: AssignmentResolver = Depends(get_assignment_resolver)):
    assignments.unassign(assignment_id)
    return {"message": "Assignment removed successfully"}
