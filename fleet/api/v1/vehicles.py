from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.models.vehicle import VehicleStatus
from fleet.schemas.vehicle import VehicleCreateRequest, VehicleUpdateRequest
from fleet.schemas.common import SuccessResponse, PaginatedResponse, success_response, paginated_response
from fleet.services.vehicle_service import vehicle_service
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/vehicles")


@router.get("", response_model=PaginatedResponse, summary="List vehicles (paginated)")
def list_vehicles(
    page:   int                     = Query(1, ge=1),
    limit:  int                     = Query(20, ge=1, le=100),
    search: Optional[str]           = Query(None, description="Search name, make, model or plate"),
    status: Optional[VehicleStatus] = Query(None, description="active | maintenance | retired"),
    db:     Session                 = Depends(get_db),
    _:      Caller                  = Depends(get_caller),
):
    data, total = vehicle_service.list_vehicles(db, page, limit, search, status)
    return paginated_response("Vehicles retrieved successfully", data, total, page, limit)


@router.get("/{vehicle_id}", response_model=SuccessResponse, summary="Get vehicle with assignments, maintenance and recent trips")
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db), _: Caller = Depends(get_caller)):
    return success_response("Vehicle retrieved", vehicle_service.get_vehicle(db, vehicle_id))


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED, summary="Create vehicle (Admin/Manager)")
def create_vehicle(
    body:   VehicleCreateRequest,
    db:     Session = Depends(get_db),
    caller: Caller  = Depends(get_caller),
):
    data = vehicle_service.create_vehicle(db, body, caller)
    return success_response("Vehicle created successfully", data)


@router.put("/{vehicle_id}", response_model=SuccessResponse, summary="Update vehicle (Admin/Manager)")
def update_vehicle(
    vehicle_id: int,
    body:       VehicleUpdateRequest,
    db:         Session = Depends(get_db),
    caller:     Caller  = Depends(get_caller),
):
    data = vehicle_service.update_vehicle(db, vehicle_id, body, caller)
    return success_response("Vehicle updated successfully", data)


@router.delete("/{vehicle_id}", response_model=SuccessResponse, summary="Delete vehicle (Admin)")
def delete_vehicle(
    vehicle_id: int,
    db:         Session = Depends(get_db),
    caller:     Caller  = Depends(get_caller),
):
    data = vehicle_service.delete_vehicle(db, vehicle_id, caller)
    return success_response("Vehicle deleted successfully", data)
