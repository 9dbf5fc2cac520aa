from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import Principal, get_current_user, get_workflow, require_evaluator
from app.schemas.evaluation import (
    EvaluationResponse,
    EvaluationSave,
    FinalizeRequest,
    RespondRequest,
    ScoreBreakdown,
    SubmitRequest,
)
from app.services import access
from app.services.evaluation_workflow import EvaluationWorkflow
from app.services.scoring import score_breakdown
from app.store import EVALUATIONS

router = APIRouter(
    prefix="/evaluations",
    tags=["evaluations"]
)


@router.get("", response_model=List[EvaluationResponse])
def list_evaluations(
    employee_id: Optional[str] = Query(None),
    evaluator_id: Optional[str] = Query(None),
    mode: Optional[str] = Query(None, description="'all' lists every evaluation (HR only)"),
    current_user: Principal = Depends(get_current_user),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    """
    List evaluations visible to the caller.

    A request with no employee_id, no evaluator_id and no mode=all returns an
    empty list for every role.
    """
    scope = access.evaluation_scope(current_user, employee_id, evaluator_id, mode)
    if scope is None:
        return []
    rows = workflow.store.find_many(EVALUATIONS, scope.where, scope.any_of)
    return [EvaluationResponse.from_record(r) for r in rows]


@router.get("/{evaluation_id}", response_model=EvaluationResponse)
def get_evaluation(
    evaluation_id: str,
    current_user: Principal = Depends(get_current_user),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    evaluation = workflow.get(evaluation_id)
    access.ensure_can_view(current_user, evaluation)
    return EvaluationResponse.from_record(evaluation)


@router.get("/{evaluation_id}/score", response_model=ScoreBreakdown)
def get_evaluation_score(
    evaluation_id: str,
    current_user: Principal = Depends(get_current_user),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    evaluation = workflow.get(evaluation_id)
    access.ensure_can_view(current_user, evaluation)
    return {"evaluation_id": evaluation_id, **score_breakdown(evaluation.get("ratings"))}


@router.post("", response_model=EvaluationResponse)
def save_evaluation(
    data: EvaluationSave,
    current_user: Principal = Depends(require_evaluator()),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    """Create a draft, or update one while it is still a draft."""
    if data.id:
        existing = workflow.store.find_by_id(EVALUATIONS, data.id)
        if existing is not None:
            access.ensure_can_edit(current_user, existing)
    saved = workflow.save(data.model_dump(exclude_unset=True), actor=current_user)
    return EvaluationResponse.from_record(saved)


@router.post("/{evaluation_id}/submit", response_model=EvaluationResponse)
def submit_evaluation(
    evaluation_id: str,
    data: SubmitRequest,
    current_user: Principal = Depends(require_evaluator()),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    access.ensure_can_edit(current_user, workflow.get(evaluation_id))
    saved = workflow.submit_to_employee(evaluation_id, data.supervisor_signature)
    return EvaluationResponse.from_record(saved)


@router.post("/{evaluation_id}/respond", response_model=EvaluationResponse)
def respond_to_evaluation(
    evaluation_id: str,
    data: RespondRequest,
    current_user: Principal = Depends(get_current_user),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    access.ensure_can_respond(current_user, workflow.get(evaluation_id))
    saved = workflow.respond(
        evaluation_id,
        data.employee_agreement,
        data.employee_comments,
        data.employee_signature,
    )
    return EvaluationResponse.from_record(saved)


@router.post("/{evaluation_id}/finalize", response_model=EvaluationResponse)
def finalize_evaluation(
    evaluation_id: str,
    data: FinalizeRequest,
    current_user: Principal = Depends(require_evaluator()),
    workflow: EvaluationWorkflow = Depends(get_workflow),
):
    access.ensure_can_edit(current_user, workflow.get(evaluation_id))
    saved = workflow.finalize(evaluation_id, data.manager_decision)
    return EvaluationResponse.from_record(saved)
