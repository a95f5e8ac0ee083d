from sqlalchemy.orm import Session

from fleet.database import Base
from fleet.models.audit_log import AuditAction, AuditLog

__all__ = ["AuditAction", "log_action"]


def log_action(
    db: Session,
    user_id: int | None,
    action: AuditAction,
    entity: Base,
    description: str | None = None,
) -> AuditLog:
    """
    Record a mutation of ``entity`` by ``user_id`` (None for seed/system actions).

    The entity must already have its primary key, so flush new rows first.
    Nothing is committed here: the entry lands or rolls back with the change.

    Usage:
        db.add(trip)
        db.flush()
        log_action(db, caller.id, AuditAction.CREATE, trip, f"Trip started from {trip.startLocation}")
        db.commit()
    """
    entry = AuditLog(
        userId=user_id,
        action=action,
        entityType=type(entity).__name__,
        entityId=entity.id,
        description=description,
    )
    db.add(entry)
    return entry
