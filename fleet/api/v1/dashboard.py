from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.schemas.common import SuccessResponse, success_response
from fleet.services.dashboard_service import DashboardService, get_dashboard_service
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/dashboard")


@router.get("/stats", response_model=SuccessResponse, summary="Fleet counts and costs for the dashboard cards")
def get_stats(
    db:      Session          = Depends(get_db),
    _:       Caller           = Depends(get_caller),
    service: DashboardService = Depends(get_dashboard_service),
):
    return success_response("Dashboard stats retrieved", service.get_stats(db))
