from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.models.user import UserRole
from fleet.schemas.user import UserCreateRequest, UserUpdateRequest
from fleet.schemas.common import SuccessResponse, PaginatedResponse, success_response, paginated_response
from fleet.services.user_service import user_service
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/users")


# GET /users: Any authenticated user
@router.get("", response_model=PaginatedResponse, status_code=status.HTTP_200_OK, summary="List users (paginated)")
def list_users(
    page:   int                = Query(1,    ge=1),
    limit:  int                = Query(20,   ge=1, le=100),
    search: Optional[str]      = Query(None, description="Search by name or email"),
    role:   Optional[UserRole] = Query(None),
    db:     Session            = Depends(get_db),
    _:      Caller             = Depends(get_caller),
):
    data, total = user_service.list_users(db, page, limit, search, role)
    return paginated_response("Users retrieved successfully", data, total, page, limit)


# GET /users/me: Any authenticated user
@router.get("/me", response_model=SuccessResponse, status_code=status.HTTP_200_OK, summary="Get current user profile")
def get_me(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return success_response("Profile retrieved", user_service.get_profile(db, caller.id))


# GET /users/{id}: Any authenticated user
@router.get("/{user_id}", response_model=SuccessResponse, status_code=status.HTTP_200_OK, summary="Get user with assignments and recent trips")
def get_user(
    user_id: int,
    db:      Session = Depends(get_db),
    _:       Caller  = Depends(get_caller),
):
    return success_response("User retrieved", user_service.get_user(db, user_id))


# POST /users: Admin only
@router.post("", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED, summary="Create new user")
def create_user(
    body:   UserCreateRequest,
    db:     Session = Depends(get_db),
    caller: Caller  = Depends(get_caller),
):
    data = user_service.create_user(db, body, caller)
    return success_response("User created successfully", data)


# PUT /users/{id}: Admin only
@router.put("/{user_id}", response_model=SuccessResponse, status_code=status.HTTP_200_OK, summary="Update user")
def update_user(
    user_id: int,
    body:    UserUpdateRequest,
    db:      Session = Depends(get_db),
    caller:  Caller  = Depends(get_caller),
):
    data = user_service.update_user(db, user_id, body, caller)
    return success_response("User updated successfully", data)


# DELETE /users/{id}: Admin only, blocked while the user holds active work
@router.delete("/{user_id}", response_model=SuccessResponse, status_code=status.HTTP_200_OK, summary="Delete user")
def delete_user(
    user_id: int,
    db:      Session = Depends(get_db),
    caller:  Caller  = Depends(get_caller),
):
    data = user_service.delete_user(db, user_id, caller)
    return success_response("User deleted successfully", data)
