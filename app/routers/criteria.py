from fastapi import APIRouter, Depends

from app.core.criteria import criteria_as_dict
from app.dependencies import get_current_user

router = APIRouter(
    prefix="/criteria",
    tags=["criteria"],
    dependencies=[Depends(get_current_user)],
)


@router.get("")
def get_criteria():
    """Categories, subcriteria, multipliers and performance bands used for scoring."""
    return criteria_as_dict()
