import enum
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet.database import Base, value_enum


class AuditAction(str, enum.Enum):
    CREATE   = "CREATE"
    UPDATE   = "UPDATE"
    COMPLETE = "COMPLETE"   # assignment or trip closed
    DELETE   = "DELETE"


class AuditLog(Base):
    """One row per mutation, written in the same transaction as the change."""
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, index=True)
    # Survives deletion of the acting user; NULL also marks seed/system actions
    userId      = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action      = Column(value_enum(AuditAction, "audit_action"), nullable=False)
    entityType  = Column(String(50), nullable=False)    # model class name: Vehicle, DriverAssignment, ...
    entityId    = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_audit_logs_entity", "entityType", "entityId"),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="audit_logs")

    def __repr__(self):
        return f"<AuditLog id={self.id} {self.action} {self.entityType}#{self.entityId}>"
