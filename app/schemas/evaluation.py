from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional
from app.models.evaluation import EvaluationStatus
from app.services.scoring import compute_score, performance_level

class EvaluationSave(BaseModel):
    """Draft payload. Workflow fields are not accepted here."""
    id: Optional[str] = None
    employee_id: Optional[str] = None
    assigned_evaluator_id: Optional[str] = None
    employee_name: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    period_from: Optional[date] = None
    period_to: Optional[date] = None
    ratings: Optional[Dict[str, int]] = None
    supervisor_comments: Optional[str] = None

class SubmitRequest(BaseModel):
    supervisor_signature: Optional[str] = None

class RespondRequest(BaseModel):
    employee_agreement: Optional[str] = None
    employee_comments: Optional[str] = None
    employee_signature: Optional[str] = None

class FinalizeRequest(BaseModel):
    manager_decision: Optional[str] = None

class Signatures(BaseModel):
    employee: Optional[str] = None
    supervisor: Optional[str] = None
    employee_timestamp: Optional[datetime] = None
    supervisor_timestamp: Optional[datetime] = None

class EvaluationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    created_by: Optional[str] = None
    assigned_evaluator_id: Optional[str] = None
    employee_name: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    period_from: Optional[date] = None
    period_to: Optional[date] = None
    ratings: Dict[str, int] = Field(default_factory=dict)
    status: EvaluationStatus
    supervisor_comments: Optional[str] = None
    employee_agreement: str = ""
    employee_comments: Optional[str] = None
    manager_decision: Optional[str] = None
    signatures: Signatures
    submitted_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None
    total_score: float
    performance_level: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "EvaluationResponse":
        # Score is always recomputed; the stored snapshot is a convenience only
        score = compute_score(record.get("ratings"))
        data = {k: v for k, v in record.items() if not k.endswith(("_signature", "_signed_at"))}
        data.update(
            ratings=record.get("ratings") or {},
            employee_agreement=record.get("employee_agreement") or "",
            signatures=Signatures(
                employee=record.get("employee_signature"),
                supervisor=record.get("supervisor_signature"),
                employee_timestamp=record.get("employee_signed_at"),
                supervisor_timestamp=record.get("supervisor_signed_at"),
            ),
            total_score=score,
            performance_level=performance_level(score),
        )
        return cls.model_validate(data)

class SubcriterionScore(BaseModel):
    id: str
    name: str
    weight: str
    multiplier: float
    rating: float
    points: float
    max_points: float

class CategoryScore(BaseModel):
    id: int
    name: str
    weight: str
    points: float
    subcriteria: List[SubcriterionScore]

class ScoreBreakdown(BaseModel):
    evaluation_id: str
    categories: List[CategoryScore]
    total_score: float
    max_score: float
    performance_level: str
