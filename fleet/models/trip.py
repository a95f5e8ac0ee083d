import enum
from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet.database import Base, value_enum


class TripStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"


class Trip(Base):
    __tablename__ = "trips"

    id            = Column(Integer, primary_key=True, index=True)
    vehicleId     = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    driverId      = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    startDate     = Column(TIMESTAMP(timezone=True), nullable=False)
    endDate       = Column(TIMESTAMP(timezone=True), nullable=True)
    startMileage  = Column(Integer, nullable=False)
    endMileage    = Column(Integer, nullable=True)
    startLocation = Column(String(255), nullable=False)
    endLocation   = Column(String(255), nullable=True)
    purpose       = Column(String(500), nullable=False)
    status        = Column(value_enum(TripStatus, "trip_status"),
                           default=TripStatus.IN_PROGRESS, nullable=False)
    createdAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                           onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="trips")
    driver  = relationship("User", back_populates="trips")

    def __repr__(self):
        return f"<Trip id={self.id} vehicleId={self.vehicleId} driverId={self.driverId} status={self.status}>"
