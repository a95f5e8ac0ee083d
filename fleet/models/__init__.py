"""
Import all models here so that:
1. Base.metadata knows every table before create_all()
2. Relationships between models resolve correctly

Parent tables are imported before child tables.
"""

from fleet.models.user import User, UserRole
from fleet.models.vehicle import Vehicle, VehicleStatus
from fleet.models.driver_assignment import DriverAssignment, AssignmentStatus
from fleet.models.maintenance_record import MaintenanceRecord, MaintenanceType
from fleet.models.trip import Trip, TripStatus
from fleet.models.audit_log import AuditLog, AuditAction

__all__ = [
    "User",
    "UserRole",
    "Vehicle",
    "VehicleStatus",
    "DriverAssignment",
    "AssignmentStatus",
    "MaintenanceRecord",
    "MaintenanceType",
    "Trip",
    "TripStatus",
    "AuditLog",
    "AuditAction",
]
