from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.models.driver_assignment import AssignmentStatus
from fleet.schemas.driver_assignment import AssignmentCreateRequest, AssignmentUpdateRequest
from fleet.schemas.common import SuccessResponse, PaginatedResponse, success_response, paginated_response
from fleet.services.assignment_service import AssignmentService, get_assignment_service
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/driver-assignments")


@router.get("", response_model=PaginatedResponse, summary="List driver assignments (newest first)")
def list_assignments(
    page:      int                        = Query(1, ge=1),
    limit:     int                        = Query(20, ge=1, le=100),
    userId:    Optional[int]              = Query(None),
    vehicleId: Optional[int]              = Query(None),
    status:    Optional[AssignmentStatus] = Query(None, description="active | completed"),
    db:        Session                    = Depends(get_db),
    _:         Caller                     = Depends(get_caller),
    service:   AssignmentService          = Depends(get_assignment_service),
):
    data, total = service.list_assignments(db, page, limit, userId, vehicleId, status)
    return paginated_response("Assignments retrieved successfully", data, total, page, limit)


@router.get("/{assignment_id}", response_model=SuccessResponse, summary="Get assignment by ID")
def get_assignment(
    assignment_id: int,
    db:      Session           = Depends(get_db),
    _:       Caller            = Depends(get_caller),
    service: AssignmentService = Depends(get_assignment_service),
):
    return success_response("Assignment retrieved", service.get_assignment(db, assignment_id))


@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED, summary="Assign a driver to a vehicle (Admin/Manager)")
def create_assignment(
    body:    AssignmentCreateRequest,
    db:      Session           = Depends(get_db),
    caller:  Caller            = Depends(get_caller),
    service: AssignmentService = Depends(get_assignment_service),
):
    data = service.create_assignment(db, body, caller)
    return success_response("Driver assigned to vehicle", data)


@router.put("/{assignment_id}", response_model=SuccessResponse, summary="End or update an assignment (Admin/Manager)")
def update_assignment(
    assignment_id: int,
    body:    AssignmentUpdateRequest,
    db:      Session           = Depends(get_db),
    caller:  Caller            = Depends(get_caller),
    service: AssignmentService = Depends(get_assignment_service),
):
    data = service.update_assignment(db, assignment_id, body, caller)
    return success_response("Assignment updated successfully", data)


@router.delete("/{assignment_id}", response_model=SuccessResponse, summary="Delete an assignment (Admin/Manager)")
def delete_assignment(
    assignment_id: int,
    db:      Session           = Depends(get_db),
    caller:  Caller            = Depends(get_caller),
    service: AssignmentService = Depends(get_assignment_service),
):
    data = service.delete_assignment(db, assignment_id, caller)
    return success_response("Assignment deleted successfully", data)
