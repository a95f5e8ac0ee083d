from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.schemas.maintenance import MaintenanceCreateRequest, MaintenanceUpdateRequest
from fleet.schemas.common import SuccessResponse, PaginatedResponse, success_response, paginated_response
from fleet.services.maintenance_service import maintenance_service
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/maintenance")


@router.get("", response_model=PaginatedResponse, summary="List maintenance records (newest service first)")
def list_records(
    page:      int           = Query(1, ge=1),
    limit:     int           = Query(20, ge=1, le=100),
    vehicleId: Optional[int] = Query(None),
    db:        Session       = Depends(get_db),
    _:         Caller        = Depends(get_caller),
):
    data, total = maintenance_service.list_records(db, page, limit, vehicleId)
    return paginated_response("Maintenance records retrieved", data, total, page, limit)


@router.get("/{record_id}", response_model=SuccessResponse, summary="Get maintenance record")
def get_record(record_id: int, db: Session = Depends(get_db), _: Caller = Depends(get_caller)):
    return success_response("Record retrieved", maintenance_service.get_record(db, record_id))


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED, summary="Create maintenance record (Admin/Manager)")
def create_record(
    body:   MaintenanceCreateRequest,
    db:     Session = Depends(get_db),
    caller: Caller  = Depends(get_caller),
):
    data = maintenance_service.create_record(db, body, caller)
    return success_response("Maintenance record created", data)


@router.put("/{record_id}", response_model=SuccessResponse, summary="Update maintenance record (Admin/Manager)")
def update_record(
    record_id: int,
    body:      MaintenanceUpdateRequest,
    db:        Session = Depends(get_db),
    caller:    Caller  = Depends(get_caller),
):
    data = maintenance_service.update_record(db, record_id, body, caller)
    return success_response("Maintenance record updated", data)


@router.delete("/{record_id}", response_model=SuccessResponse, summary="Delete maintenance record (Admin/Manager)")
def delete_record(
    record_id: int,
    db:        Session = Depends(get_db),
    caller:    Caller  = Depends(get_caller),
):
    data = maintenance_service.delete_record(db, record_id, caller)
    return success_response("Maintenance record deleted successfully", data)
