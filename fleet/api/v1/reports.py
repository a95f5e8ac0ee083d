from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from fleet.database import get_db
from fleet.dependencies import get_caller
from fleet.models.audit_log import AuditLog, AuditAction
from fleet.models.user import UserRole
from fleet.schemas.common import PaginatedResponse, paginated_response, iso
from fleet.utils.exceptions import ForbiddenException
from fleet.utils.permissions import Caller

router = APIRouter(prefix="/reports")


@router.get("/audit-logs", response_model=PaginatedResponse, summary="Audit logs (Admin)")
def get_audit_logs(
    page:       int           = Query(1, ge=1),
    limit:      int           = Query(50, ge=1, le=200),
    userId:     Optional[int] = Query(None),
    entityType: Optional[str] = Query(None, description="Vehicle, DriverAssignment, Trip, MaintenanceRecord, User"),
    entityId:   Optional[int] = Query(None),
    action:     Optional[AuditAction] = Query(None),
    db:         Session       = Depends(get_db),
    caller:     Caller        = Depends(get_caller),
):
    if caller.role != UserRole.ADMIN:
        raise ForbiddenException("Audit logs are restricted to admins")

    q = db.query(AuditLog)
    if userId:     q = q.filter(AuditLog.userId     == userId)
    if entityType: q = q.filter(AuditLog.entityType == entityType)
    if entityId:   q = q.filter(AuditLog.entityId   == entityId)
    if action:     q = q.filter(AuditLog.action     == action)

    total = q.count()
    items = q.order_by(AuditLog.createdAt.desc(), AuditLog.id.desc()).offset((page - 1) * limit).limit(limit).all()

    data = [{
        "id":          l.id,
        "user":        {"id": l.user.id, "email": l.user.email} if l.user else None,
        "action":      l.action.value,
        "entityType":  l.entityType,
        "entityId":    l.entityId,
        "description": l.description,
        "createdAt":   iso(l.createdAt),
    } for l in items]

    return paginated_response("Audit logs retrieved", data, total, page, limit)
