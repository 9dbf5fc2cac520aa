from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.dependencies import (
    Principal,
    get_current_user,
    get_movement_tracker,
    require_evaluator,
    require_hr,
)
from app.schemas.movement import CheckOutRequest, MovementResponse, MyMovements
from app.services.movements import MovementTracker, export_csv

router = APIRouter(
    prefix="/movements",
    tags=["movements"]
)


@router.post("/check-out", response_model=MovementResponse)
def check_out(
    data: CheckOutRequest,
    current_user: Principal = Depends(get_current_user),
    tracker: MovementTracker = Depends(get_movement_tracker),
):
    return tracker.check_out(
        current_user,
        category=data.category.value,
        destination=data.destination,
        reason=data.reason,
        expected_return_time=data.expected_return_time,
    )


@router.post("/check-in", response_model=MovementResponse)
def check_in(
    current_user: Principal = Depends(get_current_user),
    tracker: MovementTracker = Depends(get_movement_tracker),
):
    return tracker.check_in(current_user.id)


@router.get("/me", response_model=MyMovements)
def my_movements(
    current_user: Principal = Depends(get_current_user),
    tracker: MovementTracker = Depends(get_movement_tracker),
):
    history = tracker.list_movements(employee_id=current_user.id)
    active = next((m for m in history if m.get("actual_return_timestamp") is None), None)
    return {
        "current_status": tracker.current_status(current_user.id),
        "active": active,
        "history": history,
    }


@router.get("/active", response_model=List[MovementResponse])
def active_movements(
    _: Principal = Depends(require_evaluator()),
    tracker: MovementTracker = Depends(get_movement_tracker),
):
    """Everyone currently out of the office, earliest departure first."""
    return tracker.list_active()


@router.get("", response_model=List[MovementResponse])
def list_movements(
    department: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee_id: Optional[str] = Query(None),
    _: Principal = Depends(require_hr()),
    tracker: MovementTracker = Depends(get_movement_tracker),
):
    return tracker.list_movements(department, from_date, to_date, employee_id)


@router.get("/export")
def export_movements(
    department: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    employee_id: Optional[str] = Query(None),
    _: Principal = Depends(require_hr()),
    tracker: MovementTracker = Depends(get_movement_tracker),
):
    rows = tracker.list_movements(department, from_date, to_date, employee_id)
    suffix = date.today().isoformat()
    return Response(
        content=export_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="movements-{suffix}.csv"'},
    )
