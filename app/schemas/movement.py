from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional
from app.models.movement_log import MovementCategory, MovementStatus

class CheckOutRequest(BaseModel):
    category: MovementCategory
    destination: str = Field(min_length=1)
    reason: str = Field(min_length=1)
    expected_return_time: datetime

class MovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    employee_name: str
    department: Optional[str] = None
    category: MovementCategory
    destination: str
    reason: str
    expected_return_time: datetime
    departure_timestamp: datetime
    actual_return_timestamp: Optional[datetime] = None
    status: MovementStatus  # always derived at read time
    created_at: Optional[datetime] = None

class MyMovements(BaseModel):
    current_status: MovementStatus
    active: Optional[MovementResponse] = None
    history: List[MovementResponse]
