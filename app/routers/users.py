from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import (
    Principal,
    get_assignment_resolver,
    get_user_service,
    require_evaluator,
    require_hr,
)
from app.models.user import UserRole
from app.schemas.auth import UserCreate, UserResponse, UserUpdate
from app.services.access import roster_evaluator
from app.services.assignments import AssignmentResolver
from app.services.users import UserService, public_user

router = APIRouter(tags=["users"])


@router.get("/employees", response_model=List[UserResponse])
def list_employees(
    evaluator_id: Optional[str] = Query(None, description="Restrict to this evaluator's assigned employees"),
    current_user: Principal = Depends(require_evaluator()),
    users: UserService = Depends(get_user_service),
    assignments: AssignmentResolver = Depends(get_assignment_resolver),
):
    """
    Employees visible to the caller. HR sees everyone (or one evaluator's
    roster); management only ever sees its own assigned employees.
    """
    evaluator = roster_evaluator(current_user, evaluator_id)
    ids = assignments.employees_for(evaluator) if evaluator else None
    return [public_user(u) for u in users.list(role=UserRole.EMPLOYEE, ids=ids)]


@router.get("/users", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    _: Principal = Depends(require_hr()),
    users: UserService = Depends(get_user_service),
):
    return [public_user(u) for u in users.list(role=role)]


@router.post("/users", response_model=UserResponse)
def create_user(
    data: UserCreate,
    _: Principal = Depends(require_hr()),
    users: UserService = Depends(get_user_service),
):
    return public_user(users.create(data.model_dump()))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    data: UserUpdate,
    _: Principal = Depends(require_hr()),
    users: UserService = Depends(get_user_service),
):
    return public_user(users.update(user_id, data.model_dump(exclude_unset=True)))


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    _: Principal = Depends(require_hr()),
    users: UserService = Depends(get_user_service),
):
    users.delete(user_id)
    return {"message": "User deleted successfully"}
