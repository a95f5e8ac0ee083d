from sqlalchemy.orm import Session
from sqlalchemy import or_

from fleet.models.vehicle import Vehicle, VehicleStatus
from fleet.models.driver_assignment import AssignmentStatus
from fleet.models.trip import TripStatus
from fleet.schemas.common import iso
from fleet.schemas.vehicle import VehicleCreateRequest, VehicleUpdateRequest
from fleet.utils.audit import AuditAction, log_action
from fleet.utils.permissions import Caller, Operation, ensure_authorized
from fleet.utils.exceptions import NotFoundException, DuplicateEntryException, ConflictException


def _serialize(v: Vehicle) -> dict:
    active = next((a for a in v.assignments if a.status == AssignmentStatus.ACTIVE), None)
    return {
        "id":              v.id,
        "name":            v.name,
        "make":            v.make,
        "model":           v.model,
        "year":            v.year,
        "licensePlate":    v.licensePlate,
        "vin":             v.vin,
        "status":          v.status.value,
        "fuelType":        v.fuelType,
        "mileage":         v.mileage,
        "lastServiceDate": iso(v.lastServiceDate),
        "nextServiceDate": iso(v.nextServiceDate),
        "purchaseDate":    iso(v.purchaseDate),
        "purchasePrice":   float(v.purchasePrice),
        "imageUrl":        v.imageUrl,
        "createdAt":       iso(v.createdAt),
        "updatedAt":       iso(v.updatedAt),
        "currentAssignment": {
            "id":        active.id,
            "startDate": iso(active.startDate),
            "user":      {"id": active.user.id, "name": active.user.name, "email": active.user.email},
        } if active else None,
    }


def _serialize_detail(v: Vehicle) -> dict:
    result = _serialize(v)
    records = sorted(v.maintenance_records, key=lambda m: (m.serviceDate, m.id), reverse=True)
    trips = sorted(v.trips, key=lambda t: (t.startDate, t.id), reverse=True)[:10]
    result["maintenanceRecords"] = [{
        "id":          m.id,
        "type":        m.type.value,
        "description": m.description,
        "cost":        float(m.cost),
        "serviceDate": iso(m.serviceDate),
        "servicedBy":  m.servicedBy,
    } for m in records]
    result["trips"] = [{
        "id":        t.id,
        "driverId":  t.driverId,
        "startDate": iso(t.startDate),
        "endDate":   iso(t.endDate),
        "purpose":   t.purpose,
        "status":    t.status.value,
    } for t in trips]
    return result


class VehicleService:

    def list_vehicles(
        self, db: Session, page: int, limit: int,
        search: str | None, status: VehicleStatus | None,
    ) -> tuple[list[dict], int]:
        q = db.query(Vehicle)

        if search:
            kw = f"%{search}%"
            q = q.filter(or_(
                Vehicle.name.ilike(kw),
                Vehicle.make.ilike(kw),
                Vehicle.model.ilike(kw),
                Vehicle.licensePlate.ilike(kw),
            ))
        if status is not None:
            q = q.filter(Vehicle.status == status)

        total = q.count()
        items = q.order_by(Vehicle.createdAt.desc(), Vehicle.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return [_serialize(v) for v in items], total

    def get_vehicle(self, db: Session, vehicle_id: int) -> dict:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")
        return _serialize_detail(v)

    def create_vehicle(self, db: Session, data: VehicleCreateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.VEHICLE_CREATE)
        if db.query(Vehicle).filter(Vehicle.licensePlate == data.licensePlate).first():
            raise DuplicateEntryException("License plate already registered", field="licensePlate")
        if db.query(Vehicle).filter(Vehicle.vin == data.vin).first():
            raise DuplicateEntryException("VIN already registered", field="vin")

        vehicle = Vehicle(**data.model_dump())
        db.add(vehicle)
        db.flush()
        log_action(db, caller.id, AuditAction.CREATE, vehicle,
                   f"Created vehicle {data.licensePlate} ({data.make} {data.model})")
        db.commit()
        db.refresh(vehicle)
        return _serialize(vehicle)

    def update_vehicle(self, db: Session, vehicle_id: int, data: VehicleUpdateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.VEHICLE_UPDATE)
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")

        if data.licensePlate and data.licensePlate != v.licensePlate:
            if db.query(Vehicle).filter(Vehicle.licensePlate == data.licensePlate, Vehicle.id != vehicle_id).first():
                raise DuplicateEntryException("License plate already used", field="licensePlate")
        if data.vin and data.vin != v.vin:
            if db.query(Vehicle).filter(Vehicle.vin == data.vin, Vehicle.id != vehicle_id).first():
                raise DuplicateEntryException("VIN already used", field="vin")

        old_status = v.status
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in ("lastServiceDate", "nextServiceDate", "imageUrl"):
                continue
            setattr(v, field, value)

        description = f"Updated vehicle {v.licensePlate}"
        if v.status != old_status:
            description += f" | Status changed {old_status.value} -> {v.status.value}"
        log_action(db, caller.id, AuditAction.UPDATE, v, description)
        db.commit()
        db.refresh(v)
        return _serialize(v)

    def delete_vehicle(self, db: Session, vehicle_id: int, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.VEHICLE_DELETE)
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")
        if any(a.status == AssignmentStatus.ACTIVE for a in v.assignments):
            raise ConflictException("Cannot delete vehicle with an active driver assignment",
                                    "End the current assignment first")
        if any(t.status == TripStatus.IN_PROGRESS for t in v.trips):
            raise ConflictException("Cannot delete vehicle with active trips",
                                    "Please complete active trips first")

        log_action(db, caller.id, AuditAction.DELETE, v,
                   f"Deleted vehicle {v.licensePlate}")
        db.delete(v)
        db.commit()
        return {"id": vehicle_id}


vehicle_service = VehicleService()
