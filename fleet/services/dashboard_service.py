from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet.config import settings
from fleet.models.driver_assignment import DriverAssignment, AssignmentStatus
from fleet.models.maintenance_record import MaintenanceRecord
from fleet.models.trip import Trip, TripStatus
from fleet.models.user import User, UserRole
from fleet.models.vehicle import Vehicle, VehicleStatus
from fleet.utils.clock import Clock, utc_now


class DashboardService:

    def __init__(self, clock: Clock = utc_now, upcoming_days: int = settings.UPCOMING_MAINTENANCE_DAYS):
        self.clock = clock
        self.upcoming_days = upcoming_days

    def get_stats(self, db: Session) -> dict:
        now = self.clock()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        service_horizon = now + timedelta(days=self.upcoming_days)

        def count_vehicles(*criteria) -> int:
            return db.query(func.count(Vehicle.id)).filter(*criteria).scalar()

        monthly_cost = db.query(func.coalesce(func.sum(MaintenanceRecord.cost), 0))\
            .filter(MaintenanceRecord.serviceDate >= month_start).scalar()

        return {
            "totalVehicles":         count_vehicles(),
            "activeVehicles":        count_vehicles(Vehicle.status == VehicleStatus.ACTIVE),
            "vehiclesInMaintenance": count_vehicles(Vehicle.status == VehicleStatus.MAINTENANCE),
            "totalDrivers": db.query(func.count(User.id))
                              .filter(User.role.in_([UserRole.USER, UserRole.MANAGER])).scalar(),
            "activeTrips": db.query(func.count(Trip.id))
                             .filter(Trip.status == TripStatus.IN_PROGRESS).scalar(),
            "activeAssignments": db.query(func.count(DriverAssignment.id))
                                   .filter(DriverAssignment.status == AssignmentStatus.ACTIVE).scalar(),
            # Overdue services count as upcoming
            "upcomingMaintenance":   count_vehicles(Vehicle.nextServiceDate <= service_horizon),
            "totalMileage":          db.query(func.coalesce(func.sum(Vehicle.mileage), 0)).scalar(),
            "monthlyMaintenanceCost": float(monthly_cost),
        }


dashboard_service = DashboardService()


def get_dashboard_service() -> DashboardService:
    return dashboard_service
