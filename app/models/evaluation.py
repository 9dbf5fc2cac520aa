from sqlalchemy import Column, String, Date, Text, Float, DateTime, JSON
from app.database import Base
import enum


class EvaluationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_EMPLOYEE = "PENDING_EMPLOYEE"
    PENDING_SUPERVISOR = "PENDING_SUPERVISOR"
    COMPLETED = "COMPLETED"


class EmployeeAgreement(str, enum.Enum):
    AGREE = "agree"
    DISAGREE = "disagree"


class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(String, primary_key=True, index=True)
    employee_id = Column(String, index=True, nullable=False)
    created_by = Column(String, index=True, nullable=True)
    assigned_evaluator_id = Column(String, index=True, nullable=True)

    employee_name = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    department = Column(String, nullable=True)
    period_from = Column(Date, nullable=True)
    period_to = Column(Date, nullable=True)

    ratings = Column(JSON, nullable=False, default=dict)  # subcriterion id -> rating
    total_score = Column(Float, nullable=True)  # snapshot, always recomputable from ratings
    status = Column(String, index=True, nullable=False, default=EvaluationStatus.DRAFT.value)

    supervisor_comments = Column(Text, nullable=True)
    employee_agreement = Column(String, nullable=False, default="")
    employee_comments = Column(Text, nullable=True)
    manager_decision = Column(Text, nullable=True)

    # Signatures are base64 image data URLs
    supervisor_signature = Column(Text, nullable=True)
    supervisor_signed_at = Column(DateTime(timezone=True), nullable=True)
    employee_signature = Column(Text, nullable=True)
    employee_signed_at = Column(DateTime(timezone=True), nullable=True)

    # Workflow timestamps, each set once by the transition that produces it
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    finalized_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
