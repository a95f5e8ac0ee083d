import enum
from sqlalchemy import Column, Integer, ForeignKey, Index, TIMESTAMP, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet.database import Base, value_enum


class AssignmentStatus(str, enum.Enum):
    ACTIVE    = "active"
    COMPLETED = "completed"


class DriverAssignment(Base):
    __tablename__ = "driver_assignments"

    id        = Column(Integer, primary_key=True, index=True)
    vehicleId = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    userId    = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    startDate = Column(TIMESTAMP(timezone=True), nullable=False)
    endDate   = Column(TIMESTAMP(timezone=True), nullable=True)  # NULL = open-ended
    status    = Column(value_enum(AssignmentStatus, "assignment_status"),
                       default=AssignmentStatus.ACTIVE, nullable=False)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    # At most one active assignment per vehicle
    __table_args__ = (
        Index(
            "uq_driver_assignments_active_vehicle",
            "vehicleId",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="assignments")
    user    = relationship("User", back_populates="assignments")

    @property
    def is_active(self) -> bool:
        return self.status == AssignmentStatus.ACTIVE

    def __repr__(self):
        return f"<DriverAssignment id={self.id} userId={self.userId} vehicleId={self.vehicleId} status={self.status}>"
