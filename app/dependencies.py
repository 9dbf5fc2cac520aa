"""
Service providers for FastAPI endpoints.

Auth dependencies live in app.routers.auth_deps and are re-exported here so
routers have one import site for everything they inject.
"""
from fastapi import Depends

from app.routers.auth_deps import (
    get_current_user,
    require_role,
    require_hr,
    require_evaluator,
)
from app.services.access import Principal
from app.services.assignments import AssignmentResolver
from app.services.evaluation_workflow import EvaluationWorkflow
from app.services.movements import MovementTracker
from app.services.users import UserService
from app.store import RecordStore, get_store


def get_user_service(store: RecordStore = Depends(get_store)) -> UserService:
    return UserService(store)


def get_assignment_resolver(store: RecordStore = Depends(get_store)) -> AssignmentResolver:
    return AssignmentResolver(store)


def get_workflow(store: RecordStore = Depends(get_store)) -> EvaluationWorkflow:
    return EvaluationWorkflow(store)


def get_movement_tracker(store: RecordStore = Depends(get_store)) -> MovementTracker:
    return MovementTracker(store)


__all__ = [
    "get_current_user",
    "require_role",
    "require_hr",
    "require_evaluator",
    "get_user_service",
    "get_assignment_resolver",
    "get_workflow",
    "get_movement_tracker",
    "Principal",
]
