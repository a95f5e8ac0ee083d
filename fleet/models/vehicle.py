import enum
from sqlalchemy import Column, Integer, String, Numeric, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet.database import Base, value_enum


class VehicleStatus(str, enum.Enum):
    ACTIVE      = "active"
    MAINTENANCE = "maintenance"
    RETIRED     = "retired"


class Vehicle(Base):
    __tablename__ = "vehicles"

    id              = Column(Integer, primary_key=True, index=True)
    name            = Column(String(200), nullable=False)
    make            = Column(String(100), nullable=False)
    model           = Column(String(100), nullable=False)
    year            = Column(Integer, nullable=False)
    licensePlate    = Column(String(20), unique=True, nullable=False, index=True)
    vin             = Column(String(17), unique=True, nullable=False)
    status          = Column(value_enum(VehicleStatus, "vehicle_status"),
                             default=VehicleStatus.ACTIVE, nullable=False)
    fuelType        = Column(String(50), nullable=False)
    mileage         = Column(Integer, default=0, nullable=False)
    lastServiceDate = Column(TIMESTAMP(timezone=True), nullable=True)
    nextServiceDate = Column(TIMESTAMP(timezone=True), nullable=True)
    purchaseDate    = Column(TIMESTAMP(timezone=True), nullable=False)
    purchasePrice   = Column(Numeric(12, 2), nullable=False)
    imageUrl        = Column(String(500), nullable=True)
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                             onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    assignments         = relationship("DriverAssignment", back_populates="vehicle",
                                       cascade="all, delete-orphan")
    maintenance_records = relationship("MaintenanceRecord", back_populates="vehicle",
                                       cascade="all, delete-orphan")
    trips               = relationship("Trip", back_populates="vehicle", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Vehicle id={self.id} plate={self.licensePlate} status={self.status}>"
