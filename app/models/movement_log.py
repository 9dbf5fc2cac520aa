from sqlalchemy import Column, String, Text, DateTime, Index
from app.database import Base
import enum


class MovementCategory(str, enum.Enum):
    WORK = "work"
    PERSONAL = "personal"


class MovementStatus(str, enum.Enum):
    IN_OFFICE = "IN_OFFICE"
    OUT_OF_OFFICE = "OUT_OF_OFFICE"
    OVERDUE = "OVERDUE"
    ON_TIME = "ON_TIME"


class MovementLog(Base):
    """Employee out-of-office movement."""
    __tablename__ = "movement_logs"

    id = Column(String, primary_key=True, index=True)
    employee_id = Column(String, index=True, nullable=False)
    employee_name = Column(String, nullable=False)
    department = Column(String, index=True, nullable=True)

    category = Column(String, nullable=False)  # MovementCategory value
    destination = Column(String, nullable=False)
    reason = Column(Text, nullable=False)

    expected_return_time = Column(DateTime(timezone=True), nullable=False)
    departure_timestamp = Column(DateTime(timezone=True), nullable=False)
    actual_return_timestamp = Column(DateTime(timezone=True), nullable=True, index=True)

    # Denormalized hint only; readers recompute it from the timestamps
    status = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one open movement per employee
        Index(
            "uq_open_movement_per_employee",
            "employee_id",
            unique=True,
            sqlite_where=actual_return_timestamp.is_(None),
            postgresql_where=actual_return_timestamp.is_(None),
        ),
    )
