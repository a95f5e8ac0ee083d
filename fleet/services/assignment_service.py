import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleet.models.driver_assignment import DriverAssignment, AssignmentStatus
from fleet.models.user import User
from fleet.models.vehicle import Vehicle, VehicleStatus
from fleet.schemas.common import iso
from fleet.schemas.driver_assignment import AssignmentCreateRequest, AssignmentUpdateRequest
from fleet.schemas.dates import as_utc
from fleet.utils.audit import AuditAction, log_action
from fleet.utils.clock import Clock, utc_now
from fleet.utils.permissions import Caller, Operation, ensure_authorized
from fleet.utils.exceptions import (
    NotFoundException, ConflictException, InvalidStateException, ValidationException,
)

logger = logging.getLogger(__name__)


def vehicle_brief(v: Vehicle, with_status: bool = True) -> dict:
    result = {
        "id":           v.id,
        "make":         v.make,
        "model":        v.model,
        "year":         v.year,
        "licensePlate": v.licensePlate,
    }
    if with_status:
        result["status"] = v.status.value
    return result


def user_brief(u: User, with_role: bool = True) -> dict:
    result = {
        "id":    u.id,
        "name":  u.name,
        "email": u.email,
    }
    if with_role:
        result["role"] = u.role.value
    return result


def serialize_assignment(a: DriverAssignment, detailed: bool = True) -> dict:
    return {
        "id":        a.id,
        "vehicleId": a.vehicleId,
        "userId":    a.userId,
        "startDate": iso(a.startDate),
        "endDate":   iso(a.endDate),
        "status":    a.status.value,
        "createdAt": iso(a.createdAt),
        "updatedAt": iso(a.updatedAt),
        "vehicle":   vehicle_brief(a.vehicle, with_status=detailed),
        "user":      user_brief(a.user, with_role=detailed),
    }


class AssignmentService:
    """
    Driver-assignment lifecycle: create, end/update, delete.

    A vehicle holds at most one active assignment. The check below gives
    callers a precise error; the partial unique index on
    driver_assignments(vehicleId) WHERE status = 'active' backs it up
    when two requests race past the check.
    """

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    # ─── Queries ──────────────────────────────────────────────────────────────
    def list_assignments(
        self, db: Session, page: int, limit: int,
        user_id: int | None, vehicle_id: int | None, status: AssignmentStatus | None,
    ) -> tuple[list[dict], int]:
        q = db.query(DriverAssignment)
        if user_id is not None:    q = q.filter(DriverAssignment.userId == user_id)
        if vehicle_id is not None: q = q.filter(DriverAssignment.vehicleId == vehicle_id)
        if status is not None:     q = q.filter(DriverAssignment.status == status)

        total = q.count()
        items = q.order_by(DriverAssignment.createdAt.desc(), DriverAssignment.id.desc())\
                 .offset((page - 1) * limit).limit(limit).all()
        return [serialize_assignment(a) for a in items], total

    def get_assignment(self, db: Session, assignment_id: int) -> dict:
        return serialize_assignment(self._get_or_404(db, assignment_id))

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_assignment(self, db: Session, data: AssignmentCreateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.ASSIGNMENT_CREATE)

        # Row lock on the vehicle serializes concurrent creates (no-op on SQLite)
        vehicle = db.query(Vehicle).filter(Vehicle.id == data.vehicleId).with_for_update().first()
        if not vehicle:
            raise NotFoundException("Vehicle")
        if vehicle.status != VehicleStatus.ACTIVE:
            logger.warning("Rejected assignment: vehicle %s is %s", vehicle.id, vehicle.status.value)
            raise InvalidStateException("Vehicle is not available", field="status",
                                        actual=vehicle.status.value)

        user = db.query(User).filter(User.id == data.userId).first()
        if not user:
            raise NotFoundException("User")

        if self._has_active_assignment(db, vehicle.id):
            logger.warning("Rejected assignment: vehicle %s already assigned", vehicle.id)
            raise ConflictException("Vehicle is already assigned",
                                    "Complete or end the existing assignment first")

        assignment = DriverAssignment(
            vehicleId=vehicle.id,
            userId=user.id,
            startDate=data.startDate,
            endDate=data.endDate,
            status=AssignmentStatus.ACTIVE,
        )
        db.add(assignment)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning("Concurrent assignment for vehicle %s lost the race", vehicle.id)
            raise ConflictException("Vehicle is already assigned",
                                    "Complete or end the existing assignment first")

        log_action(db, caller.id, AuditAction.CREATE, assignment,
                   f"Assigned {user.email} to vehicle {vehicle.licensePlate}")
        db.commit()
        db.refresh(assignment)
        logger.info("Assignment %s created: vehicle=%s user=%s", assignment.id, vehicle.id, user.id)
        return serialize_assignment(assignment)

    # ─── End / Update ─────────────────────────────────────────────────────────
    def update_assignment(
        self, db: Session, assignment_id: int, data: AssignmentUpdateRequest, caller: Caller,
    ) -> dict:
        ensure_authorized(caller, Operation.ASSIGNMENT_UPDATE)
        a = self._get_or_404(db, assignment_id)

        if not data.model_fields_set:
            return serialize_assignment(a, detailed=False)

        if data.status == AssignmentStatus.ACTIVE and not a.is_active:
            raise InvalidStateException("Completed assignment cannot be reactivated",
                                        field="status", actual=a.status.value)

        start = as_utc(a.startDate)
        stamped = None
        if data.end_date_supplied:
            if data.endDate is not None and data.endDate < start:
                raise ValidationException("endDate", "End date must not be before start date")
        elif data.status == AssignmentStatus.COMPLETED and a.endDate is None:
            stamped = self.clock()
            if stamped < start:
                raise InvalidStateException("Assignment has not started yet",
                                            field="startDate", actual=iso(a.startDate))

        was_active = a.is_active
        if data.status == AssignmentStatus.COMPLETED:
            a.status = AssignmentStatus.COMPLETED

        if data.end_date_supplied:
            a.endDate = data.endDate
            # Supplying an end date closes an open assignment
            if data.endDate is not None and data.status is None and a.is_active:
                a.status = AssignmentStatus.COMPLETED
        elif stamped is not None:
            a.endDate = stamped

        completed_now = was_active and not a.is_active
        if completed_now:
            log_action(db, caller.id, AuditAction.COMPLETE, a,
                       f"Assignment #{a.id} completed for vehicle {a.vehicle.licensePlate}")
        else:
            log_action(db, caller.id, AuditAction.UPDATE, a,
                       f"Updated assignment #{a.id}")
        db.commit()
        db.refresh(a)
        if completed_now:
            logger.info("Assignment %s completed at %s", a.id, iso(a.endDate))
        return serialize_assignment(a, detailed=False)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_assignment(self, db: Session, assignment_id: int, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.ASSIGNMENT_DELETE)
        a = self._get_or_404(db, assignment_id)

        log_action(db, caller.id, AuditAction.DELETE, a,
                   f"Deleted {a.status.value} assignment #{assignment_id}")
        db.delete(a)
        db.commit()
        logger.info("Assignment %s deleted", assignment_id)
        return {"id": assignment_id}

    # ─── Helpers ──────────────────────────────────────────────────────────────
    def _get_or_404(self, db: Session, assignment_id: int) -> DriverAssignment:
        a = db.query(DriverAssignment).filter(DriverAssignment.id == assignment_id).first()
        if not a:
            raise NotFoundException("Assignment")
        return a

    def _has_active_assignment(self, db: Session, vehicle_id: int) -> bool:
        return db.query(DriverAssignment.id).filter(
            DriverAssignment.vehicleId == vehicle_id,
            DriverAssignment.status == AssignmentStatus.ACTIVE,
        ).first() is not None


assignment_service = AssignmentService()


def get_assignment_service() -> AssignmentService:
    return assignment_service
