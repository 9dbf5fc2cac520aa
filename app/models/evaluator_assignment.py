from sqlalchemy import Column, String, Boolean, DateTime, Index, true
from app.database import Base


class EvaluatorAssignment(Base):
    """Evaluator X currently evaluates employee Y. Soft-deleted via is_active."""
    __tablename__ = "evaluator_assignments"

    id = Column(String, primary_key=True, index=True)
    evaluator_id = Column(String, index=True, nullable=False)
    employee_id = Column(String, index=True, nullable=False)
    assigned_by = Column(String, nullable=False)  # HR user id
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one active assignment per pair; history rows are unconstrained
        Index(
            "uq_active_evaluator_employee",
            "evaluator_id",
            "employee_id",
            unique=True,
            sqlite_where=is_active == true(),
            postgresql_where=is_active == true(),
        ),
    )
