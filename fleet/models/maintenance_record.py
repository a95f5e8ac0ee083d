import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet.database import Base, value_enum


class MaintenanceType(str, enum.Enum):
    ROUTINE    = "routine"
    REPAIR     = "repair"
    INSPECTION = "inspection"


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id          = Column(Integer, primary_key=True, index=True)
    vehicleId   = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    type        = Column(value_enum(MaintenanceType, "maintenance_type"), nullable=False)
    description = Column(Text, nullable=False)
    cost        = Column(Numeric(12, 2), nullable=False)
    mileage     = Column(Integer, nullable=False)
    serviceDate = Column(TIMESTAMP(timezone=True), nullable=False)
    servicedBy  = Column(String(200), nullable=False)
    notes       = Column(Text, nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                         onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="maintenance_records")

    def __repr__(self):
        return f"<MaintenanceRecord id={self.id} vehicleId={self.vehicleId} type={self.type}>"
