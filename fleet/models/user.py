import enum
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet.database import Base, value_enum


class UserRole(str, enum.Enum):
    ADMIN   = "admin"
    MANAGER = "manager"
    USER    = "user"


class User(Base):
    __tablename__ = "users"

    id        = Column(Integer, primary_key=True, index=True)
    name      = Column(String(150), nullable=True)
    email     = Column(String(255), unique=True, nullable=False, index=True)
    password  = Column(String(255), nullable=False)
    role      = Column(value_enum(UserRole, "user_role"), default=UserRole.USER, nullable=False)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    # Deleting a user is guarded by UserService; only completed history remains to cascade.
    assignments = relationship("DriverAssignment", back_populates="user", cascade="all, delete-orphan")
    trips       = relationship("Trip", back_populates="driver", cascade="all, delete-orphan")
    audit_logs  = relationship("AuditLog", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
