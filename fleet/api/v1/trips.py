from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.models.trip import TripStatus
from fleet.schemas.trip import TripCreateRequest, TripUpdateRequest
from fleet.schemas.common import SuccessResponse, PaginatedResponse, success_response, paginated_response
from fleet.services.trip_service import TripService, get_trip_service
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/trips")


@router.get("", response_model=PaginatedResponse, summary="List trips (latest start first)")
def list_trips(
    page:      int                  = Query(1, ge=1),
    limit:     int                  = Query(20, ge=1, le=100),
    vehicleId: Optional[int]        = Query(None),
    driverId:  Optional[int]        = Query(None),
    status:    Optional[TripStatus] = Query(None, description="in_progress | completed"),
    db:        Session              = Depends(get_db),
    _:         Caller               = Depends(get_caller),
    service:   TripService          = Depends(get_trip_service),
):
    data, total = service.list_trips(db, page, limit, vehicleId, driverId, status)
    return paginated_response("Trips retrieved successfully", data, total, page, limit)


@router.get("/{trip_id}", response_model=SuccessResponse, summary="Get trip")
def get_trip(
    trip_id: int,
    db:      Session     = Depends(get_db),
    _:       Caller      = Depends(get_caller),
    service: TripService = Depends(get_trip_service),
):
    return success_response("Trip retrieved", service.get_trip(db, trip_id))


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED, summary="Log a trip")
def create_trip(
    body:    TripCreateRequest,
    db:      Session     = Depends(get_db),
    caller:  Caller      = Depends(get_caller),
    service: TripService = Depends(get_trip_service),
):
    data = service.create_trip(db, body, caller)
    return success_response("Trip created successfully", data)


@router.put("/{trip_id}", response_model=SuccessResponse, summary="Update or complete a trip")
def update_trip(
    trip_id: int,
    body:    TripUpdateRequest,
    db:      Session     = Depends(get_db),
    caller:  Caller      = Depends(get_caller),
    service: TripService = Depends(get_trip_service),
):
    data = service.update_trip(db, trip_id, body, caller)
    return success_response("Trip updated successfully", data)
