"""Read-only planning endpoints."""

from fastapi import APIRouter, Depends

from ..deps import get_planner
from ..models import DatabaseStateResponse, PlanResponse
from ...planner import MigrationPlanner

router = APIRouter()


@router.get("/plan", response_model=PlanResponse)
def get_plan(planner: MigrationPlanner = Depends(get_planner)):
    """Compute a fresh phased migration plan."""
    return planner.analyze().to_dict()


@router.get("/state", response_model=DatabaseStateResponse)
def get_state(planner: MigrationPlanner = Depends(get_planner)):
    """Compare current source and target counts."""
    return planner.database_state().to_dict()
