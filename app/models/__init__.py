# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, evaluation, evaluator_assignment, movement_log

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .evaluation import Evaluation, EvaluationStatus, EmployeeAgreement
from .evaluator_assignment import EvaluatorAssignment
from .movement_log import MovementLog, MovementCategory, MovementStatus

__all__ = [
    "User",
    "UserRole",
    "Evaluation",
    "EvaluationStatus",
    "EmployeeAgreement",
    "EvaluatorAssignment",
    "MovementLog",
    "MovementCategory",
    "MovementStatus",
]
