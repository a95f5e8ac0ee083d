import logging

from sqlalchemy.orm import Session
from sqlalchemy import or_

from fleet.models.user import User, UserRole
from fleet.models.driver_assignment import DriverAssignment, AssignmentStatus
from fleet.models.trip import Trip, TripStatus
from fleet.schemas.common import iso
from fleet.schemas.user import UserCreateRequest, UserUpdateRequest
from fleet.utils.security import hash_password
from fleet.utils.audit import AuditAction, log_action
from fleet.utils.permissions import Caller, Operation, ensure_authorized
from fleet.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ForbiddenException, ConflictException,
)

logger = logging.getLogger(__name__)


def _serialize_user(u: User) -> dict:
    return {
        "id":        u.id,
        "name":      u.name,
        "email":     u.email,
        "role":      u.role.value,
        "createdAt": iso(u.createdAt),
        "updatedAt": iso(u.updatedAt),
    }


def _serialize_user_detail(u: User) -> dict:
    result = _serialize_user(u)
    assignments = sorted(u.assignments, key=lambda a: (a.createdAt, a.id), reverse=True)
    trips = sorted(u.trips, key=lambda t: (t.createdAt, t.id), reverse=True)[:10]
    result["driverAssignments"] = [{
        "id":        a.id,
        "startDate": iso(a.startDate),
        "endDate":   iso(a.endDate),
        "status":    a.status.value,
        "vehicle": {
            "id":           a.vehicle.id,
            "name":         a.vehicle.name,
            "make":         a.vehicle.make,
            "model":        a.vehicle.model,
            "licensePlate": a.vehicle.licensePlate,
        },
    } for a in assignments]
    result["trips"] = [{
        "id":            t.id,
        "startDate":     iso(t.startDate),
        "endDate":       iso(t.endDate),
        "startLocation": t.startLocation,
        "endLocation":   t.endLocation,
        "status":        t.status.value,
        "vehicle":       {"id": t.vehicle.id, "licensePlate": t.vehicle.licensePlate},
    } for t in trips]
    return result


class UserService:

    # ─── List ─────────────────────────────────────────────────────────────────
    def list_users(
        self, db: Session, page: int, limit: int,
        search: str | None, role: UserRole | None,
    ) -> tuple[list[dict], int]:
        q = db.query(User)

        if search:
            kw = f"%{search}%"
            q = q.filter(or_(User.name.ilike(kw), User.email.ilike(kw)))
        if role is not None:
            q = q.filter(User.role == role)

        total = q.count()
        users = q.order_by(User.createdAt.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return [_serialize_user(u) for u in users], total

    # ─── Get by ID ────────────────────────────────────────────────────────────
    def get_user(self, db: Session, user_id: int) -> dict:
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")
        return _serialize_user_detail(u)

    def get_profile(self, db: Session, user_id: int) -> dict:
        return self.get_user(db, user_id)

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_user(self, db: Session, data: UserCreateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.USER_CREATE)
        if db.query(User).filter(User.email == data.email).first():
            raise DuplicateEntryException("Email already registered", field="email")

        u = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=data.role,
        )
        db.add(u)
        db.flush()
        log_action(db, caller.id, AuditAction.CREATE, u,
                   f"Created user {u.email} ({u.role.value})")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_user(self, db: Session, user_id: int, data: UserUpdateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.USER_UPDATE)
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")

        if data.email and data.email != u.email:
            if db.query(User).filter(User.email == data.email, User.id != user_id).first():
                raise DuplicateEntryException("Email already used by another user", field="email")

        if data.name:     u.name     = data.name
        if data.email:    u.email    = data.email
        if data.role:     u.role     = data.role
        if data.password: u.password = hash_password(data.password)

        log_action(db, caller.id, AuditAction.UPDATE, u, f"Updated user {u.email}")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_user(self, db: Session, user_id: int, caller: Caller) -> dict:
        """
        Delete a user unless they still hold live operational records.
        There is no automatic reassignment, so active assignments and
        in-progress trips must be closed first.
        """
        ensure_authorized(caller, Operation.USER_DELETE)
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")
        if u.id == caller.id:
            raise ForbiddenException("You cannot delete your own account")

        active_assignments = db.query(DriverAssignment.id).filter(
            DriverAssignment.userId == user_id,
            DriverAssignment.status == AssignmentStatus.ACTIVE,
        ).count()
        if active_assignments:
            logger.warning("Refused to delete user %s: %d active assignment(s)", user_id, active_assignments)
            raise ConflictException("Cannot delete user with active vehicle assignments",
                                    "Please complete or reassign active assignments first")

        active_trips = db.query(Trip.id).filter(
            Trip.driverId == user_id,
            Trip.status == TripStatus.IN_PROGRESS,
        ).count()
        if active_trips:
            logger.warning("Refused to delete user %s: %d active trip(s)", user_id, active_trips)
            raise ConflictException("Cannot delete user with active trips",
                                    "Please complete active trips first")

        log_action(db, caller.id, AuditAction.DELETE, u, f"Deleted user {u.email}")
        db.delete(u)
        db.commit()
        return {"id": user_id}


user_service = UserService()
