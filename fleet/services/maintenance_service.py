from sqlalchemy.orm import Session

from fleet.models.maintenance_record import MaintenanceRecord
from fleet.models.vehicle import Vehicle
from fleet.schemas.common import iso
from fleet.schemas.maintenance import MaintenanceCreateRequest, MaintenanceUpdateRequest
from fleet.utils.audit import AuditAction, log_action
from fleet.utils.permissions import Caller, Operation, ensure_authorized
from fleet.utils.exceptions import NotFoundException


def _serialize(m: MaintenanceRecord) -> dict:
    return {
        "id":          m.id,
        "vehicleId":   m.vehicleId,
        "vehicle": {
            "id":           m.vehicle.id,
            "name":         m.vehicle.name,
            "make":         m.vehicle.make,
            "model":        m.vehicle.model,
            "year":         m.vehicle.year,
            "licensePlate": m.vehicle.licensePlate,
        },
        "type":        m.type.value,
        "description": m.description,
        "cost":        float(m.cost),
        "mileage":     m.mileage,
        "serviceDate": iso(m.serviceDate),
        "servicedBy":  m.servicedBy,
        "notes":       m.notes,
        "createdAt":   iso(m.createdAt),
        "updatedAt":   iso(m.updatedAt),
    }


class MaintenanceService:

    def list_records(
        self, db: Session, page: int, limit: int, vehicle_id: int | None,
    ) -> tuple[list[dict], int]:
        q = db.query(MaintenanceRecord)
        if vehicle_id is not None:
            q = q.filter(MaintenanceRecord.vehicleId == vehicle_id)

        total = q.count()
        items = q.order_by(MaintenanceRecord.serviceDate.desc(), MaintenanceRecord.id.desc())\
                 .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(m) for m in items], total

    def get_record(self, db: Session, record_id: int) -> dict:
        m = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
        if not m: raise NotFoundException("Maintenance record")
        return _serialize(m)

    def create_record(self, db: Session, data: MaintenanceCreateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.MAINTENANCE_CREATE)
        vehicle = db.query(Vehicle).filter(Vehicle.id == data.vehicleId).first()
        if not vehicle: raise NotFoundException("Vehicle")

        record = MaintenanceRecord(**data.model_dump())
        db.add(record)
        db.flush()
        log_action(db, caller.id, AuditAction.CREATE, record,
                   f"{data.type.value.capitalize()} logged for vehicle {vehicle.licensePlate}")
        db.commit()
        db.refresh(record)
        return _serialize(record)

    def update_record(self, db: Session, record_id: int, data: MaintenanceUpdateRequest, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.MAINTENANCE_UPDATE)
        m = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
        if not m: raise NotFoundException("Maintenance record")

        if data.type is not None:        m.type        = data.type
        if data.description is not None: m.description = data.description
        if data.cost is not None:        m.cost        = data.cost
        if data.mileage is not None:     m.mileage     = data.mileage
        if data.serviceDate is not None: m.serviceDate = data.serviceDate
        if data.servicedBy is not None:  m.servicedBy  = data.servicedBy
        if "notes" in data.model_fields_set: m.notes   = data.notes

        log_action(db, caller.id, AuditAction.UPDATE, m,
                   f"Updated maintenance record #{m.id}")
        db.commit()
        db.refresh(m)
        return _serialize(m)

    def delete_record(self, db: Session, record_id: int, caller: Caller) -> dict:
        ensure_authorized(caller, Operation.MAINTENANCE_DELETE)
        m = db.query(MaintenanceRecord).filter(MaintenanceRecord.id == record_id).first()
        if not m: raise NotFoundException("Maintenance record")
        log_action(db, caller.id, AuditAction.DELETE, m,
                   f"Deleted maintenance record #{record_id}")
        db.delete(m)
        db.commit()
        return {"id": record_id}


maintenance_service = MaintenanceService()
