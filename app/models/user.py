"""
User Model.
Three fixed roles: HR, management (evaluators) and employees.
"""
from sqlalchemy import Column, String, DateTime
import enum
from app.database import Base


class UserRole(str, enum.Enum):
    """
    - HR: manages users, evaluator assignments and reports
    - MANAGEMENT: evaluates assigned employees
    - EMPLOYEE: responds to evaluations, logs movements
    """
    HR = "hr"
    MANAGEMENT = "management"
    EMPLOYEE = "employee"

    @classmethod
    def _missing_(cls, value):
        # "evaluator" is the legacy name for management
        if isinstance(value, str):
            lowered = value.lower()
            if lowered == "evaluator":
                return cls.MANAGEMENT
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, index=True)  # UserRole value
    hashed_password = Column(String, nullable=False)
    department = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    email = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User {self.id} ({self.role})>"
