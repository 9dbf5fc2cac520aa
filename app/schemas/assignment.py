from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

class AssignmentCreate(BaseModel):
    evaluator_id: str = Field(min_length=1)
    employee_id: str = Field(min_length=1)

class AssignmentUpdate(BaseModel):
    evaluator_id: Optional[str] = None
    is_active: Optional[bool] = None

class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    evaluator_id: str
    employee_id: str
    assigned_by: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
