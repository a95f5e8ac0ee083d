from sqlalchemy.orm import Session

from fleet.models.trip import Trip, TripStatus
from fleet.models.user import User
from fleet.models.vehicle import Vehicle
from fleet.schemas.common import iso
from fleet.schemas.trip import TripCreateRequest, TripUpdateRequest
from fleet.utils.audit import AuditAction, log_action
from fleet.utils.clock import Clock, utc_now
from fleet.utils.permissions import Caller, Operation, ensure_authorized
from fleet.utils.exceptions import NotFoundException, InvalidStateException, ValidationException


def _serialize(t: Trip) -> dict:
    return {
        "id":            t.id,
        "vehicleId":     t.vehicleId,
        "driverId":      t.driverId,
        "startDate":     iso(t.startDate),
        "endDate":       iso(t.endDate),
        "startMileage":  t.startMileage,
        "endMileage":    t.endMileage,
        "startLocation": t.startLocation,
        "endLocation":   t.endLocation,
        "purpose":       t.purpose,
        "status":        t.status.value,
        "createdAt":     iso(t.createdAt),
        "updatedAt":     iso(t.updatedAt),
        "vehicle": {
            "id":           t.vehicle.id,
            "make":         t.vehicle.make,
            "model":        t.vehicle.model,
            "licensePlate": t.vehicle.licensePlate,
        },
    }


class TripService:

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    def list_trips(
        self, db: Session, page: int, limit: int,
        vehicle_id: int | None, driver_id: int | None, status: TripStatus | None,
    ) -> tuple[list[dict], int]:
        q = db.query(Trip)
        if vehicle_id is not None: q = q.filter(Trip.vehicleId == vehicle_id)
        if driver_id is not None:  q = q.filter(Trip.driverId == driver_id)
        if status is not None:     q = q.filter(Trip.status == status)

        total = q.count()
        items = q.order_by(Trip.startDate.desc(), Trip.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return [_serialize(t) for t in items], total

    def get_trip(self, db: Session, trip_id: int) -> dict:
        t = db.query(Trip).filter(Trip.id == trip_id).first()
        if not t: raise NotFoundException("Trip")
        return _serialize(t)

    def create_trip(self, db: Session, data: TripCreateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.TRIP_CREATE)
        vehicle = db.query(Vehicle).filter(Vehicle.id == data.vehicleId).first()
        if not vehicle: raise NotFoundException("Vehicle")
        if not db.query(User).filter(User.id == data.driverId).first():
            raise NotFoundException("Driver")

        trip = Trip(**data.model_dump())
        db.add(trip)
        db.flush()
        log_action(db, caller.id, AuditAction.CREATE, trip,
                   f"Trip started from {data.startLocation} in vehicle {vehicle.licensePlate}")
        db.commit()
        db.refresh(trip)
        return _serialize(trip)

    def update_trip(self, db: Session, trip_id: int, data: TripUpdateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.TRIP_UPDATE)
        t = db.query(Trip).filter(Trip.id == trip_id).first()
        if not t: raise NotFoundException("Trip")

        if data.status == TripStatus.IN_PROGRESS and t.status == TripStatus.COMPLETED:
            raise InvalidStateException("Completed trip cannot be reopened",
                                        field="status", actual=t.status.value)
        if data.endMileage is not None and data.endMileage < t.startMileage:
            raise ValidationException("endMileage", "End mileage cannot be lower than start mileage")

        if data.endMileage is not None:  t.endMileage  = data.endMileage
        if data.endLocation is not None: t.endLocation = data.endLocation
        if data.purpose is not None:     t.purpose     = data.purpose
        if data.endDate is not None:     t.endDate     = data.endDate

        completing = data.status == TripStatus.COMPLETED and t.status != TripStatus.COMPLETED
        if data.status is not None:
            t.status = data.status
        if completing and t.endDate is None:
            t.endDate = self.clock()

        log_action(db, caller.id, AuditAction.COMPLETE if completing else AuditAction.UPDATE, t,
                   f"{'Completed' if completing else 'Updated'} trip #{t.id}")
        db.commit()
        db.refresh(t)
        return _serialize(t)


trip_service = TripService()


def get_trip_service() -> TripService:
    return trip_service
